import argparse
import cmd
import shlex
import ssl

from callctl.core.client import CallwireClient
from callctl.core.ports.render import Renderer
from callwire.core.connections.client import parse_error_record
from callwire.core.errors import CallwireError


def parse_server(server: str) -> tuple[str, int]:
    host, sep, port = server.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Invalid server address '{server}', expected host:port")
    return host, int(port)


class CallCmd(cmd.Cmd):
    intro = (
        "Entering callctl interactive mode. Type '<procedure> [args...]' to call, "
        "'exit' or 'quit' to leave."
    )
    prompt = "callctl> "

    def __init__(self, renderer: Renderer, argv: list[str] | None = None) -> None:
        super().__init__()

        self._renderer = renderer
        self._argparser = self._argparse()
        self._args = self._argparser.parse_args(argv)
        self._client = self._get_client()

    @property
    def args(self) -> argparse.Namespace:
        return self._args

    @property
    def interactive(self) -> bool:
        return self._args.command is None

    def close(self) -> None:
        self._client.close()

    def run_once(self) -> int:
        """Execute the call given on the command line, return an exit code."""
        return self.call(self._args.procedure, *self._args.args)

    def call(self, procedure: str, *args: str) -> int:
        try:
            text = self._client.call(procedure, *args)
        except (CallwireError, OSError) as ex:
            print(f"transport error: {ex}")
            self._client.close()
            return 2

        if (message := parse_error_record(text)) is not None:
            print(f"error: {message}")
            return 1

        print(self._renderer.render(text))
        return 0

    def default(self, line: str) -> None:
        try:
            argv = shlex.split(line)
        except ValueError as ex:
            print(str(ex))
            return

        if argv:
            self.call(*argv)

    def do_call(self, line: str) -> None:
        """call <procedure> [args...]"""
        if not line.strip():
            print("Usage: call <procedure> [args...]")
            return
        self.default(line)

    def do_exit(self, arg: str) -> bool:
        return True

    def do_quit(self, arg: str) -> bool:
        return True

    def do_EOF(self, arg: str) -> bool:
        print()
        return True

    def emptyline(self) -> bool:
        return False

    def _get_client(self) -> CallwireClient:
        host, port = parse_server(self._args.server)

        ssl_ctx = None
        if self._args.tls or self._args.cafile:
            ssl_ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
            if self._args.cafile:
                ssl_ctx.load_verify_locations(cafile=self._args.cafile)

        self.prompt = f"callctl({host}:{port})> "
        return CallwireClient(host, port, ssl_ctx, timeout=self._args.timeout)

    @staticmethod
    def _argparse() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="callctl",
            description="Call procedures exposed by a callwire server.",
        )
        parser.add_argument("--server", default="localhost:8080", help="host:port of the server")
        parser.add_argument("--tls", action="store_true", help="connect with TLS")
        parser.add_argument("--cafile", help="CA certificate (PEM) used to verify the server, implies --tls")
        parser.add_argument("--timeout", type=float, default=None, help="socket timeout in seconds")

        sub = parser.add_subparsers(dest="command")

        call = sub.add_parser("call", help="perform a single call and exit")
        call.add_argument("procedure")
        call.add_argument("args", nargs="*")

        return parser
