"""
Alpha101 Formulas #81 - #101

#82, #87, #89, #90, #91, #93, #97 and #100 require IndNeutralize and
are reported as NaN by the calculator.
"""

import numpy as np

from alphaquant.alpha_engine.primitives import EPSILON, AlphaOperators as AO
from alphaquant.alpha_engine.schemas import Alpha101Inputs


def _less(a: float, b: float) -> float:
    return 1.0 if a < b else 0.0


def alpha081(x: Alpha101Inputs) -> float:
    """(rank(log(product(rank(rank(correlation(vwap, sum(adv10, 50), 8)) ^ 4), 15))) < rank(correlation(rank(vwap), rank(volume), 5))) * -1"""
    sum_adv10 = AO.ts_sum(AO.sma(x.volume, 10), 50)
    rank1 = AO.rank(AO.correlation(x.vwap, sum_adv10, 8))
    rank2 = AO.rank(np.power(rank1, 4))
    part1 = AO.rank(AO.log(AO.product(rank2, 15)))

    part2 = AO.rank(AO.correlation(AO.rank(x.vwap), AO.rank(x.volume), 5))
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return _less(part1[-1], part2[-1]) * -1


def alpha083(x: Alpha101Inputs) -> float:
    """(rank(delay((high - low) / (sum(close, 5) / 5), 2)) * rank(rank(volume))) / (((high - low) / (sum(close, 5) / 5)) / (vwap - close))"""
    avg_close = AO.ts_sum(x.close, 5) / 5.0
    high, low, avg_close = AO.tail_align(x.high, x.low, avg_close)
    ratio = (high - low) / (avg_close + EPSILON)

    rank1 = AO.rank(AO.delay(ratio, 2))
    rank3 = AO.rank(AO.rank(x.volume))

    diff = (x.vwap - x.close) + EPSILON
    ratio, diff = AO.tail_align(ratio, diff)
    denominator = ratio / diff
    if len(rank1) == 0 or len(rank3) == 0 or len(denominator) == 0:
        return 0.0
    return (rank1[-1] * rank3[-1]) / (denominator[-1] + EPSILON)


def alpha084(x: Alpha101Inputs) -> float:
    """SignedPower(Ts_Rank(vwap - ts_max(vwap, 15), 21), delta(close, 5))"""
    vwap, ts_max = AO.tail_align(x.vwap, AO.ts_max(x.vwap, 15))
    ts_rank = AO.ts_rank(vwap - ts_max, 21)
    delta_close = AO.delta(x.close, 5)
    if len(ts_rank) == 0 or len(delta_close) == 0:
        return 0.0
    return AO.signed_power_value(ts_rank[-1], delta_close[-1])


def alpha085(x: Alpha101Inputs) -> float:
    """rank(correlation(high * 0.877 + close * 0.123, adv30, 10)) ^ rank(correlation(Ts_Rank(mid, 4), Ts_Rank(volume, 10), 7))"""
    weighted = (x.high * 0.876703) + (x.close * (1 - 0.876703))
    rank1 = AO.rank(AO.correlation(weighted, AO.sma(x.volume, 30), 10))

    mid = (x.high + x.low) / 2.0
    corr2 = AO.correlation(AO.ts_rank(mid, 4), AO.ts_rank(x.volume, 10), 7)
    rank2 = AO.rank(corr2)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return np.power(rank1[-1], rank2[-1])


def alpha086(x: Alpha101Inputs) -> float:
    """(Ts_Rank(correlation(close, sum(adv20, 15), 6), 20) < rank((open + close) - (vwap + open))) * -1"""
    sum_adv20 = AO.sma(AO.sma(x.volume, 20), 15)
    ts_rank = AO.ts_rank(AO.correlation(x.close, sum_adv20, 6), 20)
    scaled = AO.rank((x.open + x.close) - (x.vwap + x.open)) * 20
    if len(ts_rank) == 0 or len(scaled) == 0:
        return 0.0
    return _less(ts_rank[-1], scaled[-1]) * -1


def alpha088(x: Alpha101Inputs) -> float:
    """min(rank(decay_linear((rank(open) + rank(low)) - (rank(high) + rank(close)), 8)), Ts_Rank(decay_linear(correlation(Ts_Rank(close, 8), Ts_Rank(adv60, 21), 8), 7), 3))"""
    diff = (AO.rank(x.open) + AO.rank(x.low)) - (AO.rank(x.high) + AO.rank(x.close))
    part1 = AO.rank(AO.decay_linear(diff, 8))

    corr = AO.correlation(AO.ts_rank(x.close, 8), AO.ts_rank(AO.sma(x.volume, 60), 21), 8)
    part2 = AO.ts_rank(AO.decay_linear(corr, 7), 3)
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return np.minimum(part1[-1], part2[-1])


def alpha092(x: Alpha101Inputs) -> float:
    """min(Ts_Rank(decay_linear((mid + close) < (low + open), 15), 19), Ts_Rank(decay_linear(correlation(rank(low), rank(adv30), 8), 7), 7))"""
    mid = (x.high + x.low) / 2.0
    cond = np.where((mid + x.close) < (x.low + x.open), 1.0, 0.0)
    part1 = AO.ts_rank(AO.decay_linear(cond, 15), 19)

    corr = AO.correlation(AO.rank(x.low), AO.rank(AO.sma(x.volume, 30)), 8)
    part2 = AO.ts_rank(AO.decay_linear(corr, 7), 7)
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return np.minimum(part1[-1], part2[-1])


def alpha094(x: Alpha101Inputs) -> float:
    """(rank(vwap - ts_min(vwap, 12)) ^ Ts_Rank(correlation(Ts_Rank(vwap, 20), Ts_Rank(adv60, 4), 18), 3)) * -1"""
    vwap, ts_min = AO.tail_align(x.vwap, AO.ts_min(x.vwap, 12))
    rank1 = AO.rank(vwap - ts_min)

    corr = AO.correlation(AO.ts_rank(x.vwap, 20), AO.ts_rank(AO.sma(x.volume, 60), 4), 18)
    ts_rank = AO.ts_rank(corr, 3)
    if len(rank1) == 0 or len(ts_rank) == 0:
        return 0.0
    return np.power(rank1[-1], ts_rank[-1]) * -1


def alpha095(x: Alpha101Inputs) -> float:
    """rank(open - ts_min(open, 12)) < Ts_Rank(rank(correlation(sum(mid, 19), sum(adv40, 19), 13)) ^ 5, 12)"""
    open_, ts_min = AO.tail_align(x.open, AO.ts_min(x.open, 12))
    scaled = AO.rank(open_ - ts_min) * 12

    mid = (x.high + x.low) / 2.0
    corr = AO.correlation(AO.sma(mid, 19), AO.sma(AO.sma(x.volume, 40), 19), 13)
    ts_rank = AO.ts_rank(np.power(AO.rank(corr), 5), 12)
    if len(scaled) == 0 or len(ts_rank) == 0:
        return 0.0
    return _less(scaled[-1], ts_rank[-1])


def alpha096(x: Alpha101Inputs) -> float:
    """max(Ts_Rank(decay_linear(correlation(rank(vwap), rank(volume), 4), 4), 8), Ts_Rank(decay_linear(Ts_ArgMax(correlation(Ts_Rank(close, 7), Ts_Rank(adv60, 4), 4), 13), 14), 13)) * -1"""
    corr1 = AO.correlation(AO.rank(x.vwap), AO.rank(x.volume), 4)
    part1 = AO.ts_rank(AO.decay_linear(corr1, 4), 8)

    corr2 = AO.correlation(AO.ts_rank(x.close, 7), AO.ts_rank(AO.sma(x.volume, 60), 4), 4)
    part2 = AO.ts_rank(AO.decay_linear(AO.ts_argmax(corr2, 13), 14), 13)
    if len(part1) == 0 or len(part2) == 0:
        return 0.0
    return -1 * np.maximum(part1[-1], part2[-1])


def alpha098(x: Alpha101Inputs) -> float:
    """rank(decay_linear(correlation(vwap, sum(adv5, 26), 5), 7)) - rank(decay_linear(Ts_Rank(Ts_ArgMin(correlation(rank(open), rank(adv15), 21), 9), 7), 8))"""
    sum_adv5 = AO.sma(AO.sma(x.volume, 5), 26)
    rank1 = AO.rank(AO.decay_linear(AO.correlation(x.vwap, sum_adv5, 5), 7))

    corr2 = AO.correlation(AO.rank(x.open), AO.rank(AO.sma(x.volume, 15)), 21)
    ts_rank = AO.ts_rank(AO.ts_argmin(corr2, 9), 7)
    rank2 = AO.rank(AO.decay_linear(ts_rank, 8))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return rank1[-1] - rank2[-1]


def alpha099(x: Alpha101Inputs) -> float:
    """(rank(correlation(sum(mid, 20), sum(adv60, 20), 9)) < rank(correlation(low, volume, 6))) * -1"""
    mid = (x.high + x.low) / 2.0
    sum_mid = AO.ts_sum(mid, 20)
    sum_adv60 = AO.ts_sum(AO.sma(x.volume, 60), 20)
    rank1 = AO.rank(AO.correlation(sum_mid, sum_adv60, 9))
    rank2 = AO.rank(AO.correlation(x.low, x.volume, 6))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return _less(rank1[-1], rank2[-1]) * -1


def alpha101(x: Alpha101Inputs) -> float:
    """(close - open) / ((high - low) + 0.001)"""
    if len(x.close) == 0:
        return 0.0
    return (x.close[-1] - x.open[-1]) / (x.high[-1] - x.low[-1] + 0.001)


FORMULAS = {
    81: alpha081,
    83: alpha083,
    84: alpha084,
    85: alpha085,
    86: alpha086,
    88: alpha088,
    92: alpha092,
    94: alpha094,
    95: alpha095,
    96: alpha096,
    98: alpha098,
    99: alpha099,
    101: alpha101,
}
