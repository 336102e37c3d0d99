"""
Key generators
Map a caller-supplied random source to key ordinals in a half-open range [lo, hi).

None of the generators own a random source: every gen_key() takes the rng of
the calling worker, so one generator instance can serve many threads.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from .atomic_counter import AtomicCounter
from .int_hasher import hash_int
from .options import ConfigError
from .zipf import ZipfianSampler

LATEST_INITIAL_DOMAIN = 100


class KeyGenerator(ABC):
    """Base class for all key distributions"""

    @abstractmethod
    def gen_key(self, rng) -> int:
        """Generate the next key ordinal"""
        pass

    def sampler_for_operation(self) -> Callable[[Any], int]:
        """
        Key sampler for one keyed operation.

        A caller that redraws until it finds an existing key calls this once
        per operation and draws from the returned callable as often as needed.
        Generators with per-operation state advance it here, once.
        """
        return self.gen_key


def _check_range(lo: int, hi: int):
    if hi <= lo:
        raise ValueError(f"Empty key range [{lo}, {hi})")


class ScrambledZipfianGenerator(KeyGenerator):
    """Zipfian popularity with the hot ranks hashed across the whole range"""

    def __init__(self, lo: int, hi: int, zipfian_constant: float):
        _check_range(lo, hi)
        self.lo = lo
        self.hi = hi
        self.sampler = ZipfianSampler(hi - lo, zipfian_constant)

    def gen_key(self, rng) -> int:
        rank = self.sampler.draw(rng)
        return self.lo + hash_int(rank) % (self.hi - self.lo)


class UniformGenerator(KeyGenerator):

    def __init__(self, lo: int, hi: int):
        _check_range(lo, hi)
        self.lo = lo
        self.hi = hi

    def gen_key(self, rng) -> int:
        return rng.randrange(self.lo, self.hi)


@dataclass(frozen=True)
class HotspotConfig:
    """Placement of one hot region"""
    offset: int
    set_fraction: float
    opn_fraction: float


class HotspotGenerator(KeyGenerator):
    """
    80/20 style skew.

    The first set_fraction of [lo, hi) is hot and receives opn_fraction of the
    draws, the rest is cold. offset moves both regions, wrapping around hi.
    """

    def __init__(self, lo: int, hi: int, offset: int, set_fraction: float, opn_fraction: float):
        _check_range(lo, hi)
        self.lo = lo
        self.hi = hi
        self.offset = offset
        self.opn_fraction = opn_fraction
        self.hot_hi = lo + int(set_fraction * (hi - lo))

    def gen_key(self, rng) -> int:
        hot = rng.random() < self.opn_fraction
        if self.hot_hi == self.lo:
            hot = False
        elif self.hot_hi == self.hi:
            hot = True

        if hot:
            key = rng.randrange(self.lo, self.hot_hi)
        else:
            key = rng.randrange(self.hot_hi, self.hi)
        return self.lo + (key - self.lo + self.offset) % (self.hi - self.lo)


class HotspotShiftingGenerator(KeyGenerator):
    """
    Hotspot whose hot region moves once.

    The first phase1_op_count ticks are served by the phase 1 generator, all
    later ticks by the phase 2 generator. The switch never reverts.

    A tick is one gen_key() call, or one sampler_for_operation() call when
    the caller redraws rejected keys: redraws within one operation stay in
    the phase the operation started in.
    """

    def __init__(self, lo: int, hi: int, phase1: HotspotConfig, phase2: HotspotConfig,
                 phase1_op_count: int):
        self.phase1 = HotspotGenerator(lo, hi, phase1.offset, phase1.set_fraction, phase1.opn_fraction)
        self.phase2 = HotspotGenerator(lo, hi, phase2.offset, phase2.set_fraction, phase2.opn_fraction)
        self.phase1_op_count = phase1_op_count
        self.calls = AtomicCounter()
        self.logger = logging.getLogger("HotspotShiftingGenerator")

    def current_phase(self) -> int:
        return 1 if self.calls.value < self.phase1_op_count else 2

    def _next_phase_generator(self) -> HotspotGenerator:
        # read-and-increment in one step so concurrent callers see distinct counts
        prior = self.calls.fetch_increment_below(self.phase1_op_count)
        if prior is None:
            return self.phase2
        if prior == self.phase1_op_count - 1:
            # exactly one caller takes the last phase 1 slot
            self.logger.info(f"Hot region shifts after {self.phase1_op_count} operations "
                             f"(offset {self.phase1.offset} -> {self.phase2.offset})")
        return self.phase1

    def sampler_for_operation(self) -> Callable[[Any], int]:
        return self._next_phase_generator().gen_key

    def gen_key(self, rng) -> int:
        return self._next_phase_generator().gen_key(rng)


class LatestGenerator(KeyGenerator):
    """
    Zipfian skew toward the most recently inserted keys.

    Follows a shared inserted-keys counter; rank 0 maps to the newest key.
    """

    def __init__(self, inserted_keys: AtomicCounter, zipfian_constant: float = 0.99):
        self.inserted_keys = inserted_keys
        self.sampler = ZipfianSampler(LATEST_INITIAL_DOMAIN, zipfian_constant)

    def gen_key(self, rng) -> int:
        now_keys = self.inserted_keys.value
        if now_keys < 1:
            raise ValueError("Latest distribution needs at least one inserted key")
        if now_keys != self.sampler.n:
            self.sampler.resize(now_keys)
        rank, n = self.sampler.draw_with_size(rng)
        return (n - 1) - rank


def create_key_generator(options, inserted_keys: AtomicCounter, estimated_key_count: int) -> KeyGenerator:
    """
    Factory function to create the key generator for a run phase

    Args:
        options: YCSBGeneratorOptions of the run
        inserted_keys: Shared counter of keys that exist (read by 'latest')
        estimated_key_count: Upper estimate of the final key space

    Returns:
        Subclass instance of KeyGenerator
    """
    distribution = options.request_distribution
    if distribution == "zipfian":
        return ScrambledZipfianGenerator(0, estimated_key_count, options.zipfian_constant)
    elif distribution == "uniform":
        return UniformGenerator(0, estimated_key_count)
    elif distribution == "hotspot":
        return HotspotGenerator(0, options.record_count, 0,
                                options.hotspot_set_fraction, options.hotspot_opn_fraction)
    elif distribution == "latest":
        return LatestGenerator(inserted_keys, options.zipfian_constant)
    elif distribution == "hotspotshifting":
        shifted_offset = int(estimated_key_count * options.hotspot_set_fraction) + 1
        return HotspotShiftingGenerator(
            0, estimated_key_count,
            HotspotConfig(0, options.hotspot_set_fraction, options.hotspot_opn_fraction),
            HotspotConfig(shifted_offset, options.hotspot_set_fraction, options.hotspot_opn_fraction),
            options.phase1_operation_count)
    else:
        raise ConfigError(f"Unsupported request distribution: {distribution}")
