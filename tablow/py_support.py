from importlib import import_module


def get_symbol_from_path(path: str) -> object:
    """Given a `module.path:name`, load the python module and return the symbol.

    The name may be dotted to reach an attribute of an attribute, as in
    `app.views:Registry.users`.

    Args:
        path: The module path and symbol name, e.g. `module.path:name`.
    """

    if ":" in path:
        module_path, symbol = path.split(":", 1)
    else:
        module_path = path
        symbol = None

    result = import_module(module_path)

    if symbol is not None:
        for part in symbol.split("."):
            result = getattr(result, part)
    return result
