from callwire.bootstrap.config.loader import get_cli_args
from callwire.bootstrap.deps import get_cp
from callwire.core.helpers.utils import scan, setup_logging, setup_signal_handler


@scan("callwire.bootstrap.procedures")
def main():
    cli = get_cli_args()
    setup_logging(cli.log_level)

    controlplane = get_cp()
    loop = controlplane.loop

    try:
        with setup_signal_handler() as stop_event:
            loop.run_until_complete(controlplane.start(stop_event))
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            loop.close()


if __name__ == "__main__":
    main()
