import logging
import math
import os
from dataclasses import dataclass
from typing import Dict

logger = logging.getLogger("YCSBGeneratorOptions")

DISTRIBUTIONS = ("zipfian", "uniform", "hotspot", "latest", "hotspotshifting")

_PROPORTION_SLACK = 1e-9


class ConfigError(Exception):
    """Custom exception for configuration errors."""
    pass


@dataclass
class YCSBGeneratorOptions:
    """Flat snapshot of everything a generator needs. Treated as read-only once handed over."""
    record_count: int = 10
    operation_count: int = 10
    read_proportion: float = 1.0
    insert_proportion: float = 0.0
    update_proportion: float = 0.0
    rmw_proportion: float = 0.0
    zipfian_constant: float = 0.99
    hotspot_opn_fraction: float = 0.1
    hotspot_set_fraction: float = 0.1
    value_len: int = 1000
    base_seed: int = 0x202309202027
    request_distribution: str = "zipfian"
    load_sleep: int = 150  # seconds
    phase1_operation_count: int = 0

    @property
    def estimated_key_count(self) -> int:
        """Upper estimate of the key space at the end of the run phase"""
        return int(self.record_count + 2 * self.operation_count * self.insert_proportion)

    @property
    def total_operation_count(self) -> int:
        """Length of the run phase; shifting workloads extend it by the phase 1 budget"""
        return self.operation_count + self.phase1_operation_count

    @property
    def has_keyed_operations(self) -> bool:
        """Whether the run phase can issue reads, updates or RMWs"""
        return self.total_operation_count > 0 and 1.0 - self.insert_proportion > _PROPORTION_SLACK

    def validate(self):
        """
        Check the invariants the generators rely on.

        Raises:
            ConfigError: on the first violated invariant
        """
        for name in ("record_count", "operation_count", "value_len", "load_sleep",
                     "phase1_operation_count", "base_seed"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be non-negative, got {getattr(self, name)}")

        for name in ("read_proportion", "insert_proportion", "update_proportion", "rmw_proportion",
                     "hotspot_opn_fraction", "hotspot_set_fraction"):
            value = getattr(self, name)
            if math.isnan(value) or not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")

        cumulative = self.read_proportion + self.insert_proportion + self.update_proportion
        if cumulative > 1.0 + _PROPORTION_SLACK:
            raise ConfigError(f"read + insert + update proportions exceed 1 ({cumulative:.6f})")
        if cumulative + self.rmw_proportion > 1.0 + _PROPORTION_SLACK:
            raise ConfigError(f"Operation proportions sum to {cumulative + self.rmw_proportion:.6f} (> 1)")

        if math.isnan(self.zipfian_constant) or not 0.0 <= self.zipfian_constant <= 1.0:
            raise ConfigError(f"zipfian_constant must be within [0, 1], got {self.zipfian_constant}")

        if self.request_distribution not in DISTRIBUTIONS:
            raise ConfigError(f"Unsupported request distribution '{self.request_distribution}', "
                              f"expected one of {', '.join(DISTRIBUTIONS)}")

        if self.has_keyed_operations:
            # reads/updates/RMWs need existing keys to choose from
            if self.record_count == 0:
                raise ConfigError("Run phase reads existing keys but record_count is 0")
            domain = self.record_count if self.request_distribution == "hotspot" else self.estimated_key_count
            if domain < 1:
                raise ConfigError(f"Key range for '{self.request_distribution}' is empty")

    @classmethod
    def read_from_file(cls, filename: str) -> "YCSBGeneratorOptions":
        """
        Load options from a YCSB style properties file.

        Raises:
            ConfigError: if the file cannot be read or a value does not parse
        """
        if not os.path.exists(filename):
            raise ConfigError(f"Configuration file not found: {filename}")
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                names = parse_properties(f.read())
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to read configuration file: {filename} - {e}")
        return cls.from_properties(names)

    @classmethod
    def from_properties(cls, names: Dict[str, str]) -> "YCSBGeneratorOptions":
        ret = cls()
        try:
            for key, field_name, convert in _PROPERTY_FIELDS:
                if key in names:
                    setattr(ret, field_name, convert(names[key]))
            if "valuelength" in names:
                ret.value_len = _to_int(names["valuelength"])
            else:
                field_count = _to_int(names["fieldcount"]) if "fieldcount" in names else 10
                field_length = _to_int(names["fieldlength"]) if "fieldlength" in names else 100
                ret.value_len = field_count * field_length
        except ValueError as e:
            raise ConfigError(f"Malformed configuration value - {e}")
        logger.debug(f"Loaded options: {ret}")
        return ret

    def to_string(self) -> str:
        lines = []
        for key, field_name, _ in _PROPERTY_FIELDS:
            lines.append(f"{key} = {getattr(self, field_name)}")
        lines.append(f"valuelength = {self.value_len}")
        return "\n".join(lines) + "\n"


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse 'name = value' lines.

    Lines starting with '#' and lines without '=' are skipped. The name ends at
    the first whitespace or '=', the value is the first token after '='.
    A later assignment of the same name wins.
    """
    names = {}
    for line in text.splitlines():
        s = line.lstrip()
        if not s or s.startswith('#'):
            continue
        eq = s.find('=')
        if eq < 0:
            continue
        name_tokens = s[:eq].split()
        name = name_tokens[0] if name_tokens else ""
        value_tokens = s[eq + 1:].split()
        names[name] = value_tokens[0] if value_tokens else ""
    return names


def _to_int(text: str) -> int:
    value = int(text, 0) if text.lower().startswith("0x") else int(text)
    if value < 0:
        raise ValueError(f"negative count '{text}'")
    return value


_PROPERTY_FIELDS = (
    ("recordcount", "record_count", _to_int),
    ("operationcount", "operation_count", _to_int),
    ("readproportion", "read_proportion", float),
    ("insertproportion", "insert_proportion", float),
    ("updateproportion", "update_proportion", float),
    ("rmwproportion", "rmw_proportion", float),
    ("zipfianconstant", "zipfian_constant", float),
    ("hotspotopnfraction", "hotspot_opn_fraction", float),
    ("hotspotdatafraction", "hotspot_set_fraction", float),
    ("baseseed", "base_seed", _to_int),
    ("requestdistribution", "request_distribution", str),
    ("loadsleep", "load_sleep", _to_int),
    ("phase1operationcount", "phase1_operation_count", _to_int),
)
