from callwire.bootstrap.deps import get_registry

registry = get_registry()


@registry.procedure()
def echo(message: str) -> str:
    return message


@registry.procedure()
def add(a: str, b: str) -> int:
    return int(a) + int(b)


@registry.procedure("getByID")
def get_by_id(ident: int) -> int:
    return ident


@registry.procedure()
def greet(name: str | None) -> str:
    return f"Hello, {name}!" if name is not None else "Hello!"


@registry.procedure("divmod")
def divmod_(a: int, b: int) -> tuple[int, int]:
    return divmod(a, b)


@registry.procedure()
def data() -> dict:
    return {
        "name": "callwire",
        "tags": ["rpc", "tcp"],
        "limits": {"frame_header": 8, "max_frame_size": None},
    }
