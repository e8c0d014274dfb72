import sys

from callctl.bootstrap.deps import get_cli


def main() -> None:
    cli = get_cli()

    try:
        if cli.interactive:
            cli.cmdloop()
            status = 0
        else:
            status = cli.run_once()
    finally:
        cli.close()

    sys.exit(status)


if __name__ == "__main__":
    main()
