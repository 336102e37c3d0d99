import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, TextIO

from .generator import GeneratorExhaustedError, make_rng
from .operation import Operation, OpType


class YCSBWorker(threading.Thread):
    """Pulls operations from a shared generator with its own random source"""

    def __init__(self, generator, worker_index: int, base_seed: int,
                 stop_event: threading.Event,
                 sink: Optional[Callable[[Operation], None]] = None,
                 record_operations: bool = False):
        super().__init__(name=f"ycsb-worker-{worker_index}")
        self.generator = generator
        self.worker_index = worker_index
        self.rng = make_rng(base_seed, worker_index)
        self.stop_event = stop_event
        self.sink = sink
        self.record_operations = record_operations

        self.logger = logging.getLogger(f"YCSBWorker.{worker_index}")
        self.ops_executed = 0
        self.ops_by_type = {op_type: 0 for op_type in OpType}
        self.operations: List[Operation] = []
        self.error: Optional[BaseException] = None

    def run(self):
        self.logger.debug(f"Worker {self.worker_index} starting")
        try:
            while not self.stop_event.is_set() and not self.generator.is_eof():
                try:
                    op = self.generator.next_op(self.rng)
                except GeneratorExhaustedError:
                    # another worker took the last operation between is_eof() and next_op()
                    break
                self.ops_executed += 1
                self.ops_by_type[op.kind] += 1
                if self.record_operations:
                    self.operations.append(op)
                if self.sink is not None:
                    self.sink(op)
        except Exception as e:
            self.error = e
            self.logger.error(f"Worker {self.worker_index} failed: {e}", exc_info=True)
            self.stop_event.set()
        self.logger.debug(f"Worker {self.worker_index} finished after {self.ops_executed} operations")


class OperationWriter:
    """Thread-safe line writer: 'KIND key [value-length]' per operation"""

    def __init__(self, out: TextIO):
        self.out = out
        self.lock = threading.Lock()

    def __call__(self, op: Operation):
        if op.value is None:
            line = f"{op.kind.value} {op.key}\n"
        else:
            line = f"{op.kind.value} {op.key} {len(op.value)}\n"
        with self.lock:
            self.out.write(line)


@dataclass
class WorkloadResult:
    total_ops: int = 0
    elapsed_seconds: float = 0.0
    ops_by_type: dict = field(default_factory=dict)
    operations: List[Operation] = field(default_factory=list)

    @property
    def throughput(self) -> float:
        return self.total_ops / self.elapsed_seconds if self.elapsed_seconds > 0 else 0.0


def run_workload(generator, num_threads: int, base_seed: int,
                 sink: Optional[Callable[[Operation], None]] = None,
                 record_operations: bool = False) -> WorkloadResult:
    """
    Drain a generator with num_threads workers

    Args:
        generator: Anything with next_op(rng) and is_eof()
        num_threads: Number of worker threads
        base_seed: Worker i draws from random.Random(base_seed + i)
        sink: Called with every produced operation (from the worker thread)
        record_operations: Keep the produced operations in the result

    Returns:
        WorkloadResult with per-type counts, elapsed time and, if requested,
        the operations grouped by worker

    Raises:
        The first exception raised inside a worker
    """
    if num_threads < 1:
        raise ValueError(f"num_threads must be at least 1, got {num_threads}")

    logger = logging.getLogger("YCSBWorkload")
    stop_event = threading.Event()
    workers = [YCSBWorker(generator, i, base_seed, stop_event, sink, record_operations)
               for i in range(num_threads)]

    logger.info(f"Starting {num_threads} worker(s)")
    start_time = time.perf_counter()
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    elapsed = time.perf_counter() - start_time

    for worker in workers:
        if worker.error is not None:
            raise worker.error

    result = WorkloadResult(elapsed_seconds=elapsed, ops_by_type={op_type: 0 for op_type in OpType})
    for worker in workers:
        result.total_ops += worker.ops_executed
        for op_type, count in worker.ops_by_type.items():
            result.ops_by_type[op_type] += count
        result.operations.extend(worker.operations)

    logger.info(f"{result.total_ops} operations in {elapsed:.3f}s ({result.throughput:,.0f} ops/sec)")
    return result
