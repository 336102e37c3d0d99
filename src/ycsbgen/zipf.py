"""
Zipfian rank sampler

Rejection-inversion sampling after Hoermann & Derflinger, "Rejection-inversion
to generate variates from monotone discrete distributions" (1996). Draws cost
O(1) expected time, construction and resizing are O(1) for the sampling
constants. The exact generalized harmonic number H(n, theta) is only needed
for probabilities; it is computed on first use and afterwards kept up to date
incrementally, so a resize costs time proportional to the size change.
"""

import math
import threading
from typing import NamedTuple, Tuple

_TAYLOR_THRESHOLD = 1e-8


def _expm1_over_x(x: float) -> float:
    """(exp(x) - 1) / x, stable around 0"""
    if abs(x) > _TAYLOR_THRESHOLD:
        return math.expm1(x) / x
    return 1.0 + x / 2.0 * (1.0 + x / 3.0 * (1.0 + x / 4.0))


def _log1p_over_x(x: float) -> float:
    """log(1 + x) / x, stable around 0"""
    if abs(x) > _TAYLOR_THRESHOLD:
        return math.log1p(x) / x
    return 1.0 - x * (0.5 - x * (1.0 / 3.0 - x * 0.25))


def zeta_sum(start: int, end: int, theta: float, initial_sum: float = 0.0) -> float:
    """
    Partial generalized harmonic sum.

    Adds 1 / (i + 1) ** theta for i in [start, end) to initial_sum.
    """
    s = initial_sum
    for i in range(start, end):
        s += 1.0 / math.pow(i + 1, theta)
    return s


class _SamplerState(NamedTuple):
    n: int
    h_integral_n: float


class ZipfianSampler:
    """
    Draws ranks in [0, n) where rank k has weight 1 / (k + 1) ** theta.

    theta = 0 is the uniform distribution, theta = 1 the classic Zipf law.
    The sampler holds no random source; every draw takes the caller's rng
    (anything with a .random() method returning a float in [0, 1)).
    """

    def __init__(self, n: int, theta: float):
        if n < 1:
            raise ValueError(f"Zipfian domain size must be at least 1, got {n}")
        if theta < 0 or math.isnan(theta):
            raise ValueError(f"Zipfian constant must be non-negative, got {theta}")

        self.theta = theta
        self._h_integral_x1 = self._h_integral(1.5) - 1.0
        self._s = 2.0 - self._h_integral_inverse(self._h_integral(2.5) - self._h(2.0))
        self._state = _SamplerState(n, self._h_integral(n + 0.5))

        # (n the sum covers, sum) or None until someone asks for it
        self._harmonic = None
        self._harmonic_lock = threading.Lock()

    @property
    def n(self) -> int:
        return self._state.n

    def resize(self, new_n: int):
        """Change the domain size in place"""
        if new_n < 1:
            raise ValueError(f"Zipfian domain size must be at least 1, got {new_n}")
        if new_n == self._state.n:
            return
        with self._harmonic_lock:
            if self._harmonic is not None:
                self._harmonic = self._advance_harmonic(self._harmonic, new_n)
            # single reference swap, draws in flight keep the old snapshot
            self._state = _SamplerState(new_n, self._h_integral(new_n + 0.5))

    def draw(self, rng) -> int:
        return self.draw_with_size(rng)[0]

    def draw_with_size(self, rng) -> Tuple[int, int]:
        """
        Draw one rank.

        Returns:
            (rank, n): the rank and the domain size it was drawn from. A
            concurrent resize never mixes the two.
        """
        state = self._state
        n = state.n
        h_n = state.h_integral_n
        while True:
            u = h_n + rng.random() * (self._h_integral_x1 - h_n)
            x = self._h_integral_inverse(u)
            k = int(math.floor(x + 0.5))
            if k < 1:
                k = 1
            elif k > n:
                k = n
            if k - x <= self._s or u >= self._h_integral(k + 0.5) - self._h(k):
                return k - 1, n

    @property
    def harmonic(self) -> float:
        """Generalized harmonic number H(n, theta) for the current n"""
        with self._harmonic_lock:
            n = self._state.n
            if self._harmonic is None:
                self._harmonic = (n, zeta_sum(0, n, self.theta))
            elif self._harmonic[0] != n:
                self._harmonic = self._advance_harmonic(self._harmonic, n)
            return self._harmonic[1]

    def probability(self, rank: int) -> float:
        """Exact probability of drawing rank under the current domain size"""
        if rank < 0 or rank >= self.n:
            return 0.0
        return 1.0 / math.pow(rank + 1, self.theta) / self.harmonic

    def _advance_harmonic(self, harmonic, new_n: int):
        old_n, total = harmonic
        if new_n > old_n:
            total = zeta_sum(old_n, new_n, self.theta, total)
        else:
            total -= zeta_sum(new_n, old_n, self.theta)
        return new_n, total

    def _h(self, x: float) -> float:
        return math.exp(-self.theta * math.log(x))

    def _h_integral(self, x: float) -> float:
        log_x = math.log(x)
        return _expm1_over_x((1.0 - self.theta) * log_x) * log_x

    def _h_integral_inverse(self, x: float) -> float:
        t = x * (1.0 - self.theta)
        if t <= -1.0:
            # rounding can push t onto the pole of log1p
            t = math.nextafter(-1.0, 0.0)
        return math.exp(_log1p_over_x(t) * x)

    def __repr__(self):
        return f"ZipfianSampler(n={self.n}, theta={self.theta})"
