"""
YCSB operation generators

Load phase: pure inserts with ordinals 0..record_count-1.
Run phase: operation mix drawn from the configured proportions, keys drawn
from the configured distribution over the keys inserted so far.

One generator instance is shared by all workers; each worker passes its own
random source to next_op(). The key-space counters are the only shared
mutable state on the hot path.
"""

import logging
import random
import threading
import time
from typing import Optional

from .atomic_counter import AtomicCounter
from .key_generators import create_key_generator
from .operation import Operation, OpType, build_key_name, gen_new_value
from .options import YCSBGeneratorOptions

# consecutive rejections of one key choice before we complain
REJECTION_WARNING_THRESHOLD = 100_000


class GeneratorExhaustedError(RuntimeError):
    """next_op() was called after the generator reached end of stream"""
    pass


def make_rng(base_seed: int, worker_index: int = 0) -> random.Random:
    """Independent, reproducible random source for one worker"""
    return random.Random(base_seed + worker_index)


def _gen_insert(ordinal: int, value_len: int) -> Operation:
    key = build_key_name(ordinal)
    return Operation(OpType.INSERT, key, gen_new_value(key, value_len))


class YCSBLoadGenerator:
    """Load phase: inserts record_count keys in ordinal order"""

    def __init__(self, options: YCSBGeneratorOptions, name: str = "default"):
        options.validate()
        self.options = options
        self.name = name
        self.inserted_keys = AtomicCounter()
        self.logger = logging.getLogger(f"YCSBLoadGenerator.{name}")
        self.logger.info(f"Load generator initialized, {options.record_count} records to insert")

    def is_eof(self) -> bool:
        return self.inserted_keys.value >= self.options.record_count

    def try_next_op(self) -> Optional[Operation]:
        """Next insert, or None once every record has been handed out"""
        ordinal = self.inserted_keys.fetch_increment_below(self.options.record_count)
        if ordinal is None:
            return None
        return _gen_insert(ordinal, self.options.value_len)

    def next_op(self, rng=None) -> Operation:
        op = self.try_next_op()
        if op is None:
            raise GeneratorExhaustedError(
                f"Load phase of '{self.name}' already produced {self.options.record_count} inserts")
        return op

    def into_run_generator(self) -> "YCSBRunGenerator":
        """
        Finish the load phase and build the run phase generator.

        Sleeps load_sleep seconds first so the store under test can settle.
        """
        if not self.is_eof():
            raise RuntimeError(f"Load phase of '{self.name}' not finished: "
                               f"{self.inserted_keys.value}/{self.options.record_count} inserted")
        if self.options.load_sleep > 0:
            self.logger.info(f"Load finished, sleeping {self.options.load_sleep}s before run phase")
            time.sleep(self.options.load_sleep)
        return YCSBRunGenerator(self.options, self.inserted_keys.value, self.name)


class YCSBRunGenerator:
    """Run phase: the read/insert/update/RMW mix"""

    def __init__(self, options: YCSBGeneratorOptions, now_keys: int, name: str = "default"):
        options.validate()
        self.options = options
        self.name = name
        self.inserted_keys = AtomicCounter(now_keys)
        self.issued_ops = AtomicCounter()
        self.logger = logging.getLogger(f"YCSBRunGenerator.{name}")

        # the distribution is sized for the end of the run, not for now_keys
        self.estimated_key_count = options.estimated_key_count
        if options.has_keyed_operations:
            self.key_generator = create_key_generator(options, self.inserted_keys, self.estimated_key_count)
        else:
            self.key_generator = None
        self._rejection_warned = False

        self.logger.info(f"Run generator initialized with {options.request_distribution} distribution, "
                         f"{now_keys} existing keys, estimated key count {self.estimated_key_count}, "
                         f"{options.total_operation_count} operations")

    def is_eof(self) -> bool:
        return self.issued_ops.value >= self.options.total_operation_count

    def next_op(self, rng) -> Operation:
        if self.issued_ops.fetch_increment_below(self.options.total_operation_count) is None:
            raise GeneratorExhaustedError(
                f"Run phase of '{self.name}' already produced {self.options.total_operation_count} operations")

        opts = self.options
        x = rng.random()
        if x < opts.read_proportion:
            return self._gen_read(rng)
        elif x < opts.read_proportion + opts.insert_proportion:
            return self._gen_insert()
        elif x < opts.read_proportion + opts.insert_proportion + opts.update_proportion:
            return self._gen_update(rng)
        else:
            return self._gen_rmw(rng)

    def _gen_insert(self) -> Operation:
        return _gen_insert(self.inserted_keys.fetch_add(1), self.options.value_len)

    def _gen_read(self, rng) -> Operation:
        return Operation(OpType.READ, build_key_name(self._choose_ordinal(rng)))

    def _gen_update(self, rng) -> Operation:
        key = build_key_name(self._choose_ordinal(rng))
        return Operation(OpType.UPDATE, key, gen_new_value(key, self.options.value_len))

    def _gen_rmw(self, rng) -> Operation:
        key = build_key_name(self._choose_ordinal(rng))
        return Operation(OpType.RMW, key, gen_new_value(key, self.options.value_len))

    def _choose_ordinal(self, rng) -> int:
        """Draw until the distribution lands on a key that already exists"""
        draw = self.key_generator.sampler_for_operation()
        rejected = 0
        while True:
            ordinal = draw(rng)
            if ordinal < self.inserted_keys.value:
                return ordinal
            rejected += 1
            if rejected == REJECTION_WARNING_THRESHOLD and not self._rejection_warned:
                self._rejection_warned = True
                self.logger.warning(f"{rejected} consecutive key draws rejected "
                                    f"(inserted keys: {self.inserted_keys.value}, "
                                    f"estimated key count: {self.estimated_key_count})")


class YCSBGenerator:
    """
    Load phase followed by run phase behind a single next_op().

    The first caller that finds the load phase exhausted performs the
    transition (including the load sleep); concurrent callers wait for it.
    """

    def __init__(self, options: YCSBGeneratorOptions, name: str = "default"):
        self.options = options
        self.name = name
        self.load_generator = YCSBLoadGenerator(options, name)
        self.run_generator: Optional[YCSBRunGenerator] = None
        self._transition_lock = threading.Lock()
        self.logger = logging.getLogger(f"YCSBGenerator.{name}")

    @property
    def phase(self) -> str:
        return "load" if self.run_generator is None else "run"

    @property
    def inserted_keys(self) -> int:
        run = self.run_generator
        if run is None:
            return self.load_generator.inserted_keys.value
        return run.inserted_keys.value

    def is_eof(self) -> bool:
        run = self.run_generator
        if run is None:
            return self.load_generator.is_eof() and self.options.total_operation_count == 0
        return run.is_eof()

    def next_op(self, rng) -> Operation:
        if self.run_generator is None:
            op = self.load_generator.try_next_op()
            if op is not None:
                return op
            self._enter_run_phase()
        return self.run_generator.next_op(rng)

    def _enter_run_phase(self):
        with self._transition_lock:
            if self.run_generator is None:
                self.logger.info(f"Load phase complete ({self.load_generator.inserted_keys.value} keys), "
                                 f"switching to run phase")
                self.run_generator = self.load_generator.into_run_generator()
