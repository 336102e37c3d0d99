# YCSB style workload generator
from .atomic_counter import AtomicCounter
from .generator import (GeneratorExhaustedError, YCSBGenerator, YCSBLoadGenerator,
                        YCSBRunGenerator, make_rng)
from .int_hasher import hash_int
from .key_generators import (HotspotConfig, HotspotGenerator, HotspotShiftingGenerator, KeyGenerator,
                             LatestGenerator, ScrambledZipfianGenerator, UniformGenerator,
                             create_key_generator)
from .operation import Operation, OpType, build_key_name, gen_new_value
from .options import ConfigError, YCSBGeneratorOptions
from .zipf import ZipfianSampler

__all__ = [
    'AtomicCounter', 'ConfigError', 'GeneratorExhaustedError', 'HotspotConfig', 'HotspotGenerator',
    'HotspotShiftingGenerator', 'KeyGenerator', 'LatestGenerator', 'OpType', 'Operation',
    'ScrambledZipfianGenerator', 'UniformGenerator', 'YCSBGenerator', 'YCSBGeneratorOptions',
    'YCSBLoadGenerator', 'YCSBRunGenerator', 'ZipfianSampler', 'build_key_name', 'create_key_generator',
    'gen_new_value', 'hash_int', 'make_rng',
]
