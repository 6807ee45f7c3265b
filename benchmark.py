# benchmark.py
import os
import json
import time
import logging
import numpy as np
from cache import CacheParameters
from simulator import SimulationEngine
from tracefile import AccessRecord, TraceDriver, LOAD, STORE, MODIFY, read_trace, write_trace

logger = logging.getLogger(__name__)

PATTERNS = ("sequential", "random", "mixed")


class WorkloadGenerator:
    def __init__(self, working_set_kb=1024, line_size=64, access_pattern="mixed",
                 read_ratio=0.8, modify_ratio=0.0, random_seed=None):
        if access_pattern not in PATTERNS:
            raise ValueError(f"unknown access_pattern {access_pattern!r}, expected one of {PATTERNS}")
        self.rng = np.random.default_rng(random_seed)
        self.line_size = line_size
        self.num_blocks = max(1, (working_set_kb * 1024) // line_size)
        self.access_pattern = access_pattern
        self.read_ratio = read_ratio
        self.modify_ratio = modify_ratio
        self._seq_ptr = 0

    def _next_sequential(self):
        block = self._seq_ptr
        self._seq_ptr = (block + 1) % self.num_blocks
        return block

    def _next_block(self):
        if self.access_pattern == "sequential":
            return self._next_sequential()
        elif self.access_pattern == "random":
            return int(self.rng.integers(0, self.num_blocks))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._next_sequential()
            return int(self.rng.integers(0, self.num_blocks))

    def _next_kind(self):
        draw = self.rng.random()
        if draw < self.modify_ratio:
            return MODIFY
        if draw < self.modify_ratio + (1.0 - self.modify_ratio) * self.read_ratio:
            return LOAD
        return STORE

    def generate(self, num_requests):
        """
        Build `num_requests` AccessRecords over the working set.
        Addresses are block-aligned byte addresses.
        """
        records = []
        for _ in range(num_requests):
            kind = self._next_kind()
            address = self._next_block() * self.line_size
            records.append(AccessRecord(kind, address, self.line_size, f"{kind} {address:x},{self.line_size}"))
        return records


class BenchmarkRunner:
    """
    Replays one workload against every cache geometry in the config.
    """

    def __init__(self, cfg):
        self.cfg = cfg
        bench_cfg = cfg.get("benchmark", {})
        configs = cfg.get("cache", {}).get("configs", [])
        if not configs:
            raise ValueError("config has no cache.configs entries")
        self.geometries = [CacheParameters(c.get("s"), c.get("E"), c.get("b")) for c in configs]

        if bench_cfg.get("trace"):
            self.records = read_trace(bench_cfg["trace"])
        else:
            generator = WorkloadGenerator(
                working_set_kb=bench_cfg.get("working_set_kb", 1024),
                line_size=bench_cfg.get("line_size_bytes", 64),
                access_pattern=bench_cfg.get("access_pattern", "mixed"),
                read_ratio=bench_cfg.get("read_ratio", 0.8),
                modify_ratio=bench_cfg.get("modify_ratio", 0.0),
                random_seed=bench_cfg.get("random_seed", None),
            )
            self.records = generator.generate(bench_cfg.get("num_requests", 10000))

    def run_one(self, params):
        engine = SimulationEngine(params)
        start = time.time()
        stats = TraceDriver(engine).run(self.records)
        end = time.time()
        summary = {
            "s": params.set_bits,
            "E": params.associativity,
            "b": params.block_bits,
            "accesses": stats.accesses,
            "hits": stats.hits,
            "misses": stats.misses,
            "evictions": stats.evictions,
            "hit_rate": stats.hit_rate,
            "duration_s": end - start
        }
        logger.info("s=%d E=%d b=%d -> %s", params.set_bits, params.associativity,
                    params.block_bits, stats.summary())
        return summary

    def run(self):
        return [self.run_one(params) for params in self.geometries]

    def save_results(self, summaries, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, "results.json")
        with open(path, "w") as f:
            json.dump(summaries, f, indent=2)
        if out_cfg.get("trace_out"):
            trace_dir = os.path.dirname(out_cfg["trace_out"])
            if trace_dir:
                os.makedirs(trace_dir, exist_ok=True)
            write_trace(self.records, out_cfg["trace_out"])
        return path
