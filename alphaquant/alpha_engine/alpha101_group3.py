"""
Alpha101 Formulas #41 - #60

#48, #56, #58 and #59 are not implemented (industry neutralization or
unpublished definitions); the calculator reports them as NaN.
"""

import numpy as np

from alphaquant.alpha_engine.primitives import EPSILON, AlphaOperators as AO
from alphaquant.alpha_engine.schemas import Alpha101Inputs


def alpha041(x: Alpha101Inputs) -> float:
    """((high * low) ^ 0.5) - vwap"""
    if len(x.high) == 0 or len(x.low) == 0 or len(x.vwap) == 0:
        return 0.0
    return np.sqrt(x.high[-1] * x.low[-1]) - x.vwap[-1]


def alpha042(x: Alpha101Inputs) -> float:
    """rank(vwap - close) / rank(vwap + close)"""
    rank1 = AO.rank(x.vwap - x.close)
    rank2 = AO.rank(x.vwap + x.close)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return rank1[-1] / (rank2[-1] + EPSILON)


def alpha043(x: Alpha101Inputs) -> float:
    """ts_rank(volume / adv20, 20) * ts_rank(-1 * delta(close, 7), 8)"""
    volume, adv20 = AO.tail_align(x.volume, x.adv20)
    ts_rank1 = AO.ts_rank(volume / (adv20 + EPSILON), 20)
    ts_rank2 = AO.ts_rank(-1 * AO.delta(x.close, 7), 8)
    if len(ts_rank1) == 0 or len(ts_rank2) == 0:
        return 0.0
    return ts_rank1[-1] * ts_rank2[-1]


def alpha044(x: Alpha101Inputs) -> float:
    """-1 * correlation(high, rank(volume), 5)"""
    corr = AO.correlation(x.high, AO.rank(x.volume), 5)
    if len(corr) == 0:
        return 0.0
    return -corr[-1]


def alpha045(x: Alpha101Inputs) -> float:
    """-1 * rank(sum(delay(close, 5), 20) / 20) * correlation(close, volume, 2) * rank(correlation(sum(close, 5), sum(close, 20), 2))"""
    rank1 = AO.rank(AO.sma(AO.delay(x.close, 5), 20))
    corr1 = AO.correlation(x.close, x.volume, 2)
    corr2 = AO.correlation(AO.ts_sum(x.close, 5), AO.ts_sum(x.close, 20), 2)
    rank2 = AO.rank(corr2)
    if len(rank1) == 0 or len(corr1) == 0 or len(rank2) == 0:
        return 0.0
    return -1 * rank1[-1] * corr1[-1] * rank2[-1]


def _decade_slope(close: np.ndarray) -> float:
    """((delay(close, 20) - delay(close, 10)) / 10) - ((delay(close, 10) - close) / 10)"""
    delay10 = close[-11]
    delay20 = close[-21]
    return ((delay20 - delay10) / 10.0) - ((delay10 - close[-1]) / 10.0)


def alpha046(x: Alpha101Inputs) -> float:
    """0.25 < slope ? -1 : (slope < 0 ? 1 : -1 * delta(close, 1))"""
    if len(x.close) < 21:
        return 0.0
    inner = _decade_slope(x.close)
    delta1 = x.close[-1] - x.close[-2]
    if inner > 0.25:
        return -1.0
    if inner < 0:
        return 1.0
    return -1.0 * delta1


def alpha047(x: Alpha101Inputs) -> float:
    """(((rank(1 / close) * volume) / adv20) * ((high * rank(high - close)) / (sum(high, 5) / 5))) - rank(vwap - delay(vwap, 5))"""
    # Ranked series pair from their oldest elements, raw series from their newest
    rank1 = AO.rank(1.0 / (x.close + EPSILON))
    size1 = min(len(rank1), len(x.volume), len(x.adv20))
    part1 = ((rank1[:size1] * x.volume[len(x.volume) - size1:])
             / (x.adv20[len(x.adv20) - size1:] + EPSILON))

    rank2 = AO.rank(x.high - x.close)
    avg_high = AO.sma(x.high, 5) / 5.0
    size2 = min(len(x.high), len(rank2), len(avg_high))
    part2 = ((x.high[len(x.high) - size2:] * rank2[:size2])
             / (avg_high[:size2] + EPSILON))

    size = min(len(part1), len(part2))
    combined = part1[len(part1) - size:] * part2[:size]

    vwap, delayed = AO.tail_align(x.vwap, AO.delay(x.vwap, 5))
    rank3 = AO.rank(vwap - delayed)
    if len(combined) == 0 or len(rank3) == 0:
        return 0.0
    return combined[-1] - rank3[-1]


def alpha049(x: Alpha101Inputs) -> float:
    """slope < -0.1 ? 1 : -1 * delta(close, 1)"""
    if len(x.close) < 21:
        return 0.0
    if _decade_slope(x.close) < -0.1:
        return 1.0
    return -1.0 * (x.close[-1] - x.close[-2])


def alpha050(x: Alpha101Inputs) -> float:
    """-1 * ts_max(rank(correlation(rank(volume), rank(vwap), 5)), 5)"""
    corr = AO.correlation(AO.rank(x.volume), AO.rank(x.vwap), 5)
    ts_max = AO.ts_max(AO.rank(corr), 5)
    if len(ts_max) == 0:
        return 0.0
    return -ts_max[-1]


def alpha051(x: Alpha101Inputs) -> float:
    """slope < -0.05 ? 1 : -1 * delta(close, 1)"""
    if len(x.close) < 21:
        return 0.0
    if _decade_slope(x.close) < -0.05:
        return 1.0
    return -1.0 * (x.close[-1] - x.close[-2])


def alpha052(x: Alpha101Inputs) -> float:
    """((-1 * delta(ts_min(low, 5), 5)) * rank((sum(returns, 240) - sum(returns, 20)) / 220)) * ts_rank(volume, 5)"""
    delta_ts_min = AO.delta(AO.ts_min(x.low, 5), 5)
    sum240, sum20 = AO.head_align(AO.ts_sum(x.returns, 240), AO.ts_sum(x.returns, 20))
    ranked = AO.rank((sum240 - sum20) / 220.0)
    ts_rank_volume = AO.ts_rank(x.volume, 5)
    if len(delta_ts_min) == 0 or len(ranked) == 0 or len(ts_rank_volume) == 0:
        return 0.0
    return ((-1 * delta_ts_min[-1]) * ranked[-1]) * ts_rank_volume[-1]


def alpha053(x: Alpha101Inputs) -> float:
    """-1 * delta(((close - low) - (high - close)) / (close - low), 9)"""
    inner = ((x.close - x.low) - (x.high - x.close)) / (x.close - x.low + EPSILON)
    delta_inner = AO.delta(inner, 9)
    if len(delta_inner) == 0:
        return 0.0
    return -delta_inner[-1]


def alpha054(x: Alpha101Inputs) -> float:
    """(-1 * ((low - close) * (open ^ 5))) / ((low - high) * (close ^ 5))"""
    if len(x.close) == 0:
        return 0.0
    o, c, h, l = x.open[-1], x.close[-1], x.high[-1], x.low[-1]
    numerator = (l - c) * np.power(o, 5)
    denominator = (l - h) * np.power(c, 5) + EPSILON
    return -1 * numerator / denominator


def alpha055(x: Alpha101Inputs) -> float:
    """-1 * correlation(rank((close - ts_min(low, 12)) / (ts_max(high, 12) - ts_min(low, 12))), rank(volume), 6)"""
    close, ts_min_low, ts_max_high = AO.tail_align(x.close, AO.ts_min(x.low, 12), AO.ts_max(x.high, 12))
    inner = (close - ts_min_low) / (ts_max_high - ts_min_low + EPSILON)
    corr = AO.correlation(AO.rank(inner), AO.rank(x.volume), 6)
    if len(corr) == 0:
        return 0.0
    return -corr[-1]


def alpha057(x: Alpha101Inputs) -> float:
    """0 - (1 * ((close - vwap) / decay_linear(rank(ts_argmax(close, 30)), 2)))"""
    decayed = AO.decay_linear(AO.rank(AO.ts_argmax(x.close, 30)), 2)
    close_vwap = x.close - x.vwap
    if len(close_vwap) == 0 or len(decayed) == 0:
        return 0.0
    return 0.0 - (1.0 * (close_vwap[-1] / (decayed[-1] + EPSILON)))


def alpha060(x: Alpha101Inputs) -> float:
    """-1 * ((2 * scale(rank(((close - low) - (high - close)) / (high - low) * volume))) - scale(rank(ts_argmax(close, 10))))"""
    inner = ((x.close - x.low) - (x.high - x.close)) * x.volume / (x.high - x.low + EPSILON)
    scaled1 = AO.scale(AO.rank(inner), 1.0)
    scaled2 = AO.scale(AO.rank(AO.ts_argmax(x.close, 10)), 1.0)
    if len(scaled1) == 0 or len(scaled2) == 0:
        return 0.0
    return -1 * ((2.0 * scaled1[-1]) - scaled2[-1])


FORMULAS = {
    41: alpha041,
    42: alpha042,
    43: alpha043,
    44: alpha044,
    45: alpha045,
    46: alpha046,
    47: alpha047,
    49: alpha049,
    50: alpha050,
    51: alpha051,
    52: alpha052,
    53: alpha053,
    54: alpha054,
    55: alpha055,
    57: alpha057,
    60: alpha060,
}
