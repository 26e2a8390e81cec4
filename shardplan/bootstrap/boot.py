from shardplan.bootstrap.config.loader import get_cli_args
from shardplan.bootstrap.deps import get_partitioner, get_provider, get_renderer
from shardplan.core.helpers.utils import setup_logging


def main():
    cli = get_cli_args()
    setup_logging(cli.log_level)

    partitioner = get_partitioner()
    try:
        partitions = partitioner.compute_partitions()
    finally:
        get_provider().close()

    output = get_renderer().render([p.to_dict() for p in partitions])
    print(output.rstrip("\n"))


if __name__ == "__main__":
    main()
