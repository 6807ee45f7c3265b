# main.py
import argparse
import json
import logging
import sys
from cache import CacheParameters, ConfigurationError
from simulator import SimulationEngine
from tracefile import MalformedTraceLine, TraceDriver, read_trace

logger = logging.getLogger(__name__)


def load_config(path="config.json"):
    with open(path, "r") as f:
        return json.load(f)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="csim",
        description="Replay a valgrind memory trace against a set-associative cache model.",
    )
    parser.add_argument("-s", type=int, dest="set_bits", metavar="<s>",
                        help="Number of set index bits (S = 2^s is the number of sets)")
    parser.add_argument("-E", type=int, dest="associativity", metavar="<E>",
                        help="Associativity (number of lines per set)")
    parser.add_argument("-b", type=int, dest="block_bits", metavar="<b>",
                        help="Number of block bits (B = 2^b is the block size)")
    parser.add_argument("-t", dest="trace", metavar="<tracefile>",
                        help="Name of the valgrind trace to replay")
    parser.add_argument("-v", action="store_true", dest="verbose",
                        help="Print each trace record with its hit/miss/eviction outcome")
    parser.add_argument("--config", metavar="<config.json>",
                        help="Run a benchmark sweep described by a JSON config (not combinable with -s/-E/-b/-t)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Diagnostics level (written to stderr)")
    return parser


def print_outcome(record, outcomes):
    print(f"{record.text} {' '.join(outcomes)}")


def run_trace(args, parser):
    if args.trace is None:
        parser.error("missing required parameter -t")
    try:
        params = CacheParameters(args.set_bits, args.associativity, args.block_bits)
    except ConfigurationError as e:
        parser.error(str(e))

    try:
        records = read_trace(args.trace)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("cannot read trace file %s: %s", args.trace, e)
        return 1
    except MalformedTraceLine as e:
        logger.error("malformed trace %s, %s", args.trace, e)
        return 1

    engine = SimulationEngine(params)
    driver = TraceDriver(engine, on_access=print_outcome if args.verbose else None)
    stats = driver.run(records)
    sys.stdout.write(stats.summary())
    sys.stdout.flush()
    return 0


def run_benchmark(args):
    # heavier imports only for sweeps
    from benchmark import BenchmarkRunner
    from visualize import plot_hit_miss_rate, plot_sweep

    try:
        cfg = load_config(args.config)
        runner = BenchmarkRunner(cfg)
    except (OSError, ValueError) as e:
        logger.error("cannot start benchmark from %s: %s", args.config, e)
        return 1

    print("Starting benchmark with config:", cfg.get("benchmark", {}))
    summaries = runner.run()
    out_cfg = cfg.get("output", {})
    results_path = runner.save_results(summaries, out_cfg)
    for summary in summaries:
        print("Benchmark Summary:", summary)
    print("Results saved to:", results_path)

    best = max(summaries, key=lambda r: r["hit_rate"])
    plot_hit_miss_rate(best["hit_rate"], out_cfg.get("hitmiss_plot", "results/hit_miss_rate.png"),
                       title=f"Best Hit Rate (s={best['s']} E={best['E']} b={best['b']})")
    plot_sweep(summaries, out_cfg.get("sweep_plot", "results/sweep.png"))
    print("Plots saved in", out_cfg.get("results_dir", "results"))
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s: %(message)s")
    if args.config:
        given = [flag for flag, value in (("-s", args.set_bits), ("-E", args.associativity),
                                          ("-b", args.block_bits), ("-t", args.trace)) if value is not None]
        if given:
            parser.error(f"--config cannot be combined with {', '.join(given)}")
        return run_benchmark(args)
    return run_trace(args, parser)


if __name__ == "__main__":
    sys.exit(main())
