import argparse

from telco_churn.pipeline import PipelineRunner


def main(argv=None) -> None:
    """Run the full telco churn modeling pipeline."""
    parser = argparse.ArgumentParser(description="Telco customer churn pipeline")
    parser.add_argument("data_path", nargs="?", help="CSV file (overrides data.path in the config)")
    parser.add_argument("--config", default="config/default.yaml", help="YAML configuration file")
    args = parser.parse_args(argv)

    runner = PipelineRunner(args.config, data_path=args.data_path)
    runner.run()


if __name__ == "__main__":
    main()
