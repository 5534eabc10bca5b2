"""
Alpha101 Formulas #61 - #80

#63, #67, #69, #70, #76, #79 and #80 require IndNeutralize and are
reported as NaN by the calculator.

Several formulas here correlate a price series with a long ADV series
of a different length; by operator contract the correlation is empty
and the alpha evaluates to 0.0.
"""

import numpy as np

from alphaquant.alpha_engine.primitives import EPSILON, AlphaOperators as AO
from alphaquant.alpha_engine.schemas import Alpha101Inputs


def _less(a: float, b: float) -> float:
    """1.0 when a < b, NaN compares false"""
    return 1.0 if a < b else 0.0


def alpha061(x: Alpha101Inputs) -> float:
    """rank(vwap - ts_min(vwap, 16)) < rank(correlation(vwap, adv180, 18))"""
    vwap, ts_min = AO.tail_align(x.vwap, AO.ts_min(x.vwap, 16))
    rank1 = AO.rank(vwap - ts_min)
    rank2 = AO.rank(AO.correlation(x.vwap, AO.sma(x.volume, 180), 18))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1])


def alpha062(x: Alpha101Inputs) -> float:
    """(rank(correlation(vwap, sum(adv20, 22), 10)) < rank((rank(open) + rank(open)) < (rank(mid) + rank(high)))) * -1"""
    sum_adv20 = AO.sma(AO.sma(x.volume, 20), 22)
    rank1 = AO.rank(AO.correlation(x.vwap, sum_adv20, 10))

    rank_open, rank_mid, rank_high = AO.tail_align(
        AO.rank(x.open), AO.rank((x.high + x.low) / 2.0), AO.rank(x.high)
    )
    cond = np.where((rank_open + rank_open) < (rank_mid + rank_high), 1.0, 0.0)
    rank2 = AO.rank(cond)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1]) * -1


def alpha064(x: Alpha101Inputs) -> float:
    """(rank(correlation(sum(open * 0.178 + low * 0.822, 13), sum(adv120, 13), 17)) < rank(delta(mid * 0.178 + vwap * 0.822, 4))) * -1"""
    weighted = (x.open * 0.178404) + (x.low * (1 - 0.178404))
    sum_weighted = AO.sma(weighted, 13)
    sum_adv120 = AO.sma(AO.sma(x.volume, 120), 13)
    rank1 = AO.rank(AO.correlation(sum_weighted, sum_adv120, 17))

    mid = (x.high + x.low) / 2.0
    mid_weighted = (mid * 0.178404) + (x.vwap * (1 - 0.178404))
    rank2 = AO.rank(AO.delta(mid_weighted, 4))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1]) * -1


def alpha065(x: Alpha101Inputs) -> float:
    """(rank(correlation(open * 0.008 + vwap * 0.992, sum(adv60, 9), 6)) < rank(open - ts_min(open, 14))) * -1"""
    weighted = (x.open * 0.00817205) + (x.vwap * (1 - 0.00817205))
    sum_adv60 = AO.sma(AO.sma(x.volume, 60), 9)
    rank1 = AO.rank(AO.correlation(weighted, sum_adv60, 6))

    open_, ts_min = AO.tail_align(x.open, AO.ts_min(x.open, 14))
    rank2 = AO.rank(open_ - ts_min)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1]) * -1


def alpha066(x: Alpha101Inputs) -> float:
    """(rank(decay_linear(delta(vwap, 4), 7)) + Ts_Rank(decay_linear((low - vwap) / (open - mid), 11), 7)) * -1"""
    rank1 = AO.rank(AO.decay_linear(AO.delta(x.vwap, 4), 7))

    weighted_low = (x.low * 0.96633) + (x.low * (1 - 0.96633))
    mid = (x.high + x.low) / 2.0
    inner = (weighted_low - x.vwap) / (x.open - mid + EPSILON)
    ts_rank = AO.ts_rank(AO.decay_linear(inner, 11), 7)
    if len(rank1) == 0 or len(ts_rank) == 0:
        return 0.0
    return (rank1[-1] + ts_rank[-1]) * -1


def alpha068(x: Alpha101Inputs) -> float:
    """(Ts_Rank(correlation(rank(high), rank(adv15), 9), 14) < rank(delta(close * 0.518 + low * 0.482, 2) * 14)) * -1"""
    corr = AO.correlation(AO.rank(x.high), AO.rank(AO.sma(x.volume, 15)), 9)
    ts_rank1 = AO.ts_rank(corr, 14)

    weighted = (x.close * 0.518371) + (x.low * (1 - 0.518371))
    rank1 = AO.rank(AO.delta(weighted, 2) * 14)
    if len(ts_rank1) == 0 or len(rank1) == 0:
        return 0.0
    return _less(ts_rank1[-1], rank1[-1]) * -1


def alpha071(x: Alpha101Inputs) -> float:
    """max(Ts_Rank(decay_linear(correlation(Ts_Rank(close, 3), Ts_Rank(adv180, 12), 18), 4), 16), Ts_Rank(decay_linear(rank((low + open) - 2 * vwap) ^ 2, 16), 4))"""
    corr = AO.correlation(AO.ts_rank(x.close, 3), AO.ts_rank(AO.sma(x.volume, 180), 12), 18)
    part1 = AO.ts_rank(AO.decay_linear(corr, 4), 16)

    ranked = AO.rank((x.low + x.open) - (x.vwap + x.vwap))
    part2 = AO.ts_rank(AO.decay_linear(ranked * ranked, 16), 4)
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return np.maximum(part1[-1], part2[-1])


def alpha072(x: Alpha101Inputs) -> float:
    """rank(decay_linear(correlation(mid, adv40, 9), 10)) / rank(decay_linear(correlation(Ts_Rank(vwap, 4), Ts_Rank(volume, 19), 7), 3))"""
    mid = (x.high + x.low) / 2.0
    corr1 = AO.correlation(mid, AO.sma(x.volume, 40), 9)
    rank1 = AO.rank(AO.decay_linear(corr1, 10))

    corr2 = AO.correlation(AO.ts_rank(x.vwap, 4), AO.ts_rank(x.volume, 19), 7)
    rank2 = AO.rank(AO.decay_linear(corr2, 3))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return rank1[-1] / (rank2[-1] + EPSILON)


def alpha073(x: Alpha101Inputs) -> float:
    """max(rank(decay_linear(delta(vwap, 5), 3)), Ts_Rank(decay_linear(-delta(w, 2) / w, 3), 17)) * -1"""
    part1 = AO.rank(AO.decay_linear(AO.delta(x.vwap, 5), 3))

    weighted = (x.open * 0.147155) + (x.low * (1 - 0.147155))
    delta_weighted, weighted = AO.tail_align(AO.delta(weighted, 2), weighted)
    ratio = (delta_weighted / (weighted + EPSILON)) * -1
    part2 = AO.ts_rank(AO.decay_linear(ratio, 3), 17)
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return -1 * np.maximum(part1[-1], part2[-1])


def alpha074(x: Alpha101Inputs) -> float:
    """(rank(correlation(close, sum(adv30, 37), 15)) < rank(correlation(rank(high * 0.026 + vwap * 0.974), rank(volume), 11))) * -1"""
    sum_adv30 = AO.sma(AO.sma(x.volume, 30), 37)
    rank1 = AO.rank(AO.correlation(x.close, sum_adv30, 15))

    weighted = (x.high * 0.0261661) + (x.vwap * (1 - 0.0261661))
    rank2 = AO.rank(AO.correlation(AO.rank(weighted), AO.rank(x.volume), 11))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1]) * -1


def alpha075(x: Alpha101Inputs) -> float:
    """rank(correlation(vwap, volume, 4)) < rank(correlation(rank(low), rank(adv50), 12))"""
    rank1 = AO.rank(AO.correlation(x.vwap, x.volume, 4))
    corr2 = AO.correlation(AO.rank(x.low), AO.rank(AO.sma(x.volume, 50)), 12)
    rank2 = AO.rank(corr2)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1])


def alpha077(x: Alpha101Inputs) -> float:
    """min(rank(decay_linear((mid + high) - (vwap + high), 20)), rank(decay_linear(correlation(mid, adv40, 3), 6)))"""
    mid = (x.high + x.low) / 2.0
    part1 = AO.rank(AO.decay_linear((mid + x.high) - (x.vwap + x.high), 20))

    corr = AO.correlation(mid, AO.sma(x.volume, 40), 3)
    part2 = AO.rank(AO.decay_linear(corr, 6))
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return np.minimum(part1[-1], part2[-1])


def alpha078(x: Alpha101Inputs) -> float:
    """rank(correlation(sum(low * 0.352 + vwap * 0.648, 20), sum(adv40, 20), 7)) ^ rank(correlation(rank(vwap), rank(volume), 6))"""
    weighted = (x.low * 0.352233) + (x.vwap * (1 - 0.352233))
    sum_weighted = AO.ts_sum(weighted, 20)
    sum_adv40 = AO.ts_sum(AO.sma(x.volume, 40), 20)
    rank1 = AO.rank(AO.correlation(sum_weighted, sum_adv40, 7))
    rank2 = AO.rank(AO.correlation(AO.rank(x.vwap), AO.rank(x.volume), 6))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return np.power(rank1[-1], rank2[-1])


FORMULAS = {
    61: alpha061,
    62: alpha062,
    64: alpha064,
    65: alpha065,
    66: alpha066,
    68: alpha068,
    71: alpha071,
    72: alpha072,
    73: alpha073,
    74: alpha074,
    75: alpha075,
    77: alpha077,
    78: alpha078,
}
