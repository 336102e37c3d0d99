MASK_64 = 0xFFFFFFFFFFFFFFFF


def hash_int(x: int) -> int:
    """
    64-bit mixing function (splitmix64 output step).

    Bijective on [0, 2**64), so distinct ordinals map to distinct values.
    Used both to scramble Zipfian ranks and to name keys.
    """
    z = (x + 0x9E3779B97F4A7C15) & MASK_64
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK_64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK_64
    return z ^ (z >> 31)
