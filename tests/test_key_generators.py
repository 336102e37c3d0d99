import random
import unittest
from collections import Counter

from ycsbgen.atomic_counter import AtomicCounter
from ycsbgen.int_hasher import hash_int
from ycsbgen.key_generators import (HotspotConfig, HotspotGenerator, HotspotShiftingGenerator,
                                    LatestGenerator, ScrambledZipfianGenerator, UniformGenerator,
                                    create_key_generator)
from ycsbgen.options import ConfigError, YCSBGeneratorOptions


class TestKeyGenerators(unittest.TestCase):

    def test_uniform_range(self):
        gen = UniformGenerator(10, 20)
        rng = random.Random(1)
        keys = [gen.gen_key(rng) for _ in range(5000)]
        assert set(keys) == set(range(10, 20))

    def test_empty_range_rejected(self):
        with self.assertRaises(ValueError):
            UniformGenerator(5, 5)
        with self.assertRaises(ValueError):
            HotspotGenerator(3, 2, 0, 0.1, 0.9)

    def test_scrambled_zipfian_spreads_hot_key(self):
        lo, hi = 1000, 2000
        gen = ScrambledZipfianGenerator(lo, hi, 0.99)
        rng = random.Random(2)
        counts = Counter(gen.gen_key(rng) for _ in range(20_000))
        assert all(lo <= key < hi for key in counts)
        hottest, _ = counts.most_common(1)[0]
        # rank 0 is the hottest rank; scrambling moves it to hash(0)
        assert hottest == lo + hash_int(0) % (hi - lo)

    def test_hotspot_concentration(self):
        gen = HotspotGenerator(0, 1000, 0, 0.1, 0.9)
        rng = random.Random(3)
        keys = [gen.gen_key(rng) for _ in range(10_000)]
        assert all(0 <= key < 1000 for key in keys)
        hot_share = sum(1 for key in keys if key < 100) / len(keys)
        assert 0.85 <= hot_share <= 0.95

    def test_hotspot_offset_wraps(self):
        gen = HotspotGenerator(0, 1000, 950, 0.1, 1.0)
        rng = random.Random(4)
        keys = {gen.gen_key(rng) for _ in range(5000)}
        assert keys == set(range(950, 1000)) | set(range(0, 50))

    def test_hotspot_degenerate_fractions(self):
        rng = random.Random(5)
        all_cold = HotspotGenerator(0, 100, 0, 0.0, 1.0)
        assert all(0 <= all_cold.gen_key(rng) < 100 for _ in range(500))
        all_hot = HotspotGenerator(0, 100, 0, 1.0, 0.0)
        assert all(0 <= all_hot.gen_key(rng) < 100 for _ in range(500))

    def test_hotspot_shifting_switches_after_phase1_count(self):
        phase1_count = 5
        gen = HotspotShiftingGenerator(0, 1000,
                                       HotspotConfig(0, 0.1, 1.0),
                                       HotspotConfig(500, 0.1, 1.0),
                                       phase1_count)
        rng = random.Random(6)
        assert gen.current_phase() == 1
        first = [gen.gen_key(rng) for _ in range(phase1_count)]
        assert all(0 <= key < 100 for key in first)
        assert gen.current_phase() == 2
        # call K + 1 and everything after it lands in the shifted region
        later = [gen.gen_key(rng) for _ in range(50)]
        assert all(500 <= key < 600 for key in later)

    def test_hotspot_shifting_logs_shift_once(self):
        gen = HotspotShiftingGenerator(0, 1000,
                                       HotspotConfig(0, 0.1, 1.0),
                                       HotspotConfig(500, 0.1, 1.0),
                                       3)
        rng = random.Random(8)
        with self.assertLogs("HotspotShiftingGenerator", level="INFO") as logs:
            for _ in range(10):
                gen.gen_key(rng)
        assert len(logs.records) == 1

    def test_hotspot_shifting_redraws_stay_in_phase(self):
        gen = HotspotShiftingGenerator(0, 1000,
                                       HotspotConfig(0, 0.1, 1.0),
                                       HotspotConfig(500, 0.1, 1.0),
                                       2)
        rng = random.Random(9)
        draw = gen.sampler_for_operation()
        assert all(0 <= draw(rng) < 100 for _ in range(30))
        # thirty draws, one operation
        assert gen.calls.value == 1
        assert gen.current_phase() == 1

        gen.sampler_for_operation()
        assert gen.current_phase() == 2
        draw = gen.sampler_for_operation()
        assert all(500 <= draw(rng) < 600 for _ in range(30))

    def test_other_generators_sample_with_gen_key(self):
        gen = UniformGenerator(10, 20)
        draw = gen.sampler_for_operation()
        rng = random.Random(10)
        assert all(10 <= draw(rng) < 20 for _ in range(50))

    def test_hotspot_shifting_without_phase1(self):
        gen = HotspotShiftingGenerator(0, 1000,
                                       HotspotConfig(0, 0.1, 1.0),
                                       HotspotConfig(500, 0.1, 1.0),
                                       0)
        rng = random.Random(7)
        assert all(500 <= gen.gen_key(rng) < 600 for _ in range(20))

    def test_latest_favours_newest_keys(self):
        inserted = AtomicCounter(1000)
        gen = LatestGenerator(inserted, 0.99)
        rng = random.Random(8)
        counts = Counter(gen.gen_key(rng) for _ in range(10_000))
        assert all(0 <= key < 1000 for key in counts)
        assert counts.most_common(1)[0][0] == 999
        assert gen.sampler.n == 1000

        inserted.fetch_add(500)
        counts = Counter(gen.gen_key(rng) for _ in range(10_000))
        assert all(0 <= key < 1500 for key in counts)
        assert counts.most_common(1)[0][0] == 1499
        assert gen.sampler.n == 1500

    def test_latest_needs_inserted_keys(self):
        gen = LatestGenerator(AtomicCounter(0))
        with self.assertRaises(ValueError):
            gen.gen_key(random.Random(9))

    def test_factory_dispatch(self):
        expected = {
            "zipfian": ScrambledZipfianGenerator,
            "uniform": UniformGenerator,
            "hotspot": HotspotGenerator,
            "latest": LatestGenerator,
            "hotspotshifting": HotspotShiftingGenerator,
        }
        for name, cls in expected.items():
            options = YCSBGeneratorOptions(record_count=100, operation_count=100,
                                           request_distribution=name, phase1_operation_count=10)
            gen = create_key_generator(options, AtomicCounter(100), options.estimated_key_count)
            assert isinstance(gen, cls), name

    def test_factory_hotspot_uses_record_count(self):
        options = YCSBGeneratorOptions(record_count=100, operation_count=1000, read_proportion=0.5,
                                       insert_proportion=0.5, request_distribution="hotspot")
        gen = create_key_generator(options, AtomicCounter(100), options.estimated_key_count)
        assert gen.hi == 100

    def test_factory_hotspotshifting_offsets(self):
        options = YCSBGeneratorOptions(record_count=1000, operation_count=100, hotspot_set_fraction=0.2,
                                       request_distribution="hotspotshifting", phase1_operation_count=10)
        gen = create_key_generator(options, AtomicCounter(1000), 1000)
        assert gen.phase1.offset == 0
        assert gen.phase2.offset == 201
        assert gen.phase1_op_count == 10

    def test_factory_unknown_distribution(self):
        options = YCSBGeneratorOptions(request_distribution="exponential")
        with self.assertRaises(ConfigError):
            create_key_generator(options, AtomicCounter(10), 10)


class TestAtomicCounter(unittest.TestCase):

    def test_fetch_add(self):
        counter = AtomicCounter(3)
        assert counter.fetch_add() == 3
        assert counter.fetch_add(5) == 4
        assert counter.value == 9

    def test_fetch_increment_below(self):
        counter = AtomicCounter()
        assert [counter.fetch_increment_below(2) for _ in range(4)] == [0, 1, None, None]
        assert counter.value == 2
