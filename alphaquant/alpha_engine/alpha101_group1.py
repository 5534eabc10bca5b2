"""
Alpha101 Formulas #1 - #20

Each formula takes the shared Alpha101Inputs and returns the value for
the latest bar. An empty intermediate series yields 0.0.

Cross-sectional rank() is evaluated over the instrument's own history.
"""

import numpy as np

from alphaquant.alpha_engine.primitives import EPSILON, AlphaOperators as AO
from alphaquant.alpha_engine.schemas import Alpha101Inputs


def alpha001(x: Alpha101Inputs) -> float:
    """rank(Ts_ArgMax(SignedPower((returns < 0 ? stddev(returns, 20) : close), 2), 5)) - 0.5"""
    std_returns = AO.stddev(x.returns, 20)
    returns, close, std_returns = AO.tail_align(x.returns, x.close, std_returns)
    inner = np.where(returns < 0, std_returns, close)
    ranked = AO.rank(AO.ts_argmax(AO.signedpower(inner, 2.0), 5))
    if len(ranked) == 0:
        return 0.0
    return ranked[-1] - 0.5


def alpha002(x: Alpha101Inputs) -> float:
    """-1 * correlation(rank(delta(log(volume), 2)), rank((close - open) / open), 6)"""
    rank_delta = AO.rank(AO.delta(AO.log(x.volume), 2))
    rank_price = AO.rank((x.close - x.open) / (x.open + EPSILON))
    corr = AO.correlation(*AO.tail_align(rank_delta, rank_price), 6)
    if len(corr) == 0:
        return 0.0
    return -corr[-1]


def alpha003(x: Alpha101Inputs) -> float:
    """-1 * correlation(rank(open), rank(volume), 10)"""
    corr = AO.correlation(AO.rank(x.open), AO.rank(x.volume), 10)
    if len(corr) == 0:
        return 0.0
    return -corr[-1]


def alpha004(x: Alpha101Inputs) -> float:
    """-1 * Ts_Rank(rank(low), 9)"""
    ts_rank = AO.ts_rank(AO.rank(x.low), 9)
    if len(ts_rank) == 0:
        return 0.0
    return -ts_rank[-1]


def alpha005(x: Alpha101Inputs) -> float:
    """rank(open - sum(vwap, 10) / 10) * (-1 * abs(rank(close - vwap)))"""
    avg_vwap = AO.ts_sum(x.vwap, 10) / 10.0
    open_, avg_vwap = AO.tail_align(x.open, avg_vwap)
    rank1 = AO.rank(open_ - avg_vwap)
    rank2 = AO.rank(x.close - x.vwap)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return rank1[-1] * (-1 * abs(rank2[-1]))


def alpha006(x: Alpha101Inputs) -> float:
    """-1 * correlation(open, volume, 10)"""
    corr = AO.correlation(x.open, x.volume, 10)
    if len(corr) == 0:
        return 0.0
    return -corr[-1]


def alpha007(x: Alpha101Inputs) -> float:
    """(adv20 < volume) ? (-1 * ts_rank(abs(delta(close, 7)), 60)) * sign(delta(close, 7)) : -1"""
    if len(x.adv20) == 0 or len(x.volume) < len(x.adv20):
        return 0.0
    if not x.adv20[-1] < x.volume[-1]:
        return -1.0

    delta_close = AO.delta(x.close, 7)
    ts_rank = AO.ts_rank(AO.abs(delta_close), 60)
    if len(ts_rank) == 0 or len(delta_close) == 0:
        return -1.0
    return (-1 * ts_rank[-1]) * AO.sign_value(delta_close[-1])


def alpha008(x: Alpha101Inputs) -> float:
    """-1 * rank(sum(open, 5) * sum(returns, 5) - delay(sum(open, 5) * sum(returns, 5), 10))"""
    sum_open, sum_returns = AO.tail_align(AO.ts_sum(x.open, 5), AO.ts_sum(x.returns, 5))
    product = sum_open * sum_returns
    current, delayed = AO.tail_align(product, AO.delay(product, 10))
    ranked = AO.rank(current - delayed)
    if len(ranked) == 0:
        return 0.0
    return -ranked[-1]


def alpha009(x: Alpha101Inputs) -> float:
    """Trend-following delta(close, 1) over a 5-bar min/max test"""
    delta_close = AO.delta(x.close, 1)
    ts_min = AO.ts_min(delta_close, 5)
    ts_max = AO.ts_max(delta_close, 5)
    if len(delta_close) == 0 or len(ts_min) == 0 or len(ts_max) == 0:
        return 0.0

    delta = delta_close[-1]
    if 0 < ts_min[-1] or ts_max[-1] < 0:
        return delta
    return -1 * delta


def alpha010(x: Alpha101Inputs) -> float:
    """rank of the alpha009 condition over a 4-bar window"""
    delta_close = AO.delta(x.close, 1)
    ts_min = AO.ts_min(delta_close, 4)
    ts_max = AO.ts_max(delta_close, 4)
    if len(delta_close) == 0 or len(ts_min) == 0 or len(ts_max) == 0:
        return 0.0

    delta, ts_min, ts_max = AO.tail_align(delta_close, ts_min, ts_max)
    trending = (0 < ts_min) | (ts_max < 0)
    ranked = AO.rank(np.where(trending, delta, -1 * delta))
    if len(ranked) == 0:
        return 0.0
    return ranked[-1]


def alpha011(x: Alpha101Inputs) -> float:
    """(rank(ts_max(vwap - close, 3)) + rank(ts_min(vwap - close, 3))) * rank(delta(volume, 3))"""
    diff = x.vwap - x.close
    rank1 = AO.rank(AO.ts_max(diff, 3))
    rank2 = AO.rank(AO.ts_min(diff, 3))
    rank3 = AO.rank(AO.delta(x.volume, 3))
    if len(rank1) == 0 or len(rank2) == 0 or len(rank3) == 0:
        return 0.0
    return (rank1[-1] + rank2[-1]) * rank3[-1]


def alpha012(x: Alpha101Inputs) -> float:
    """sign(delta(volume, 1)) * (-1 * delta(close, 1))"""
    delta_volume = AO.delta(x.volume, 1)
    delta_close = AO.delta(x.close, 1)
    if len(delta_volume) == 0 or len(delta_close) == 0:
        return 0.0
    return AO.sign_value(delta_volume[-1]) * (-1 * delta_close[-1])


def alpha013(x: Alpha101Inputs) -> float:
    """-1 * rank(covariance(rank(close), rank(volume), 5))"""
    ranked = AO.rank(AO.covariance(AO.rank(x.close), AO.rank(x.volume), 5))
    if len(ranked) == 0:
        return 0.0
    return -ranked[-1]


def alpha014(x: Alpha101Inputs) -> float:
    """(-1 * rank(delta(returns, 3))) * correlation(open, volume, 10)"""
    ranked = AO.rank(AO.delta(x.returns, 3))
    corr = AO.correlation(x.open, x.volume, 10)
    if len(ranked) == 0 or len(corr) == 0:
        return 0.0
    return (-1 * ranked[-1]) * corr[-1]


def alpha015(x: Alpha101Inputs) -> float:
    """-1 * sum(rank(correlation(rank(high), rank(volume), 3)), 3)"""
    corr = AO.correlation(AO.rank(x.high), AO.rank(x.volume), 3)
    total = AO.ts_sum(AO.rank(corr), 3)
    if len(total) == 0:
        return 0.0
    return -total[-1]


def alpha016(x: Alpha101Inputs) -> float:
    """-1 * rank(covariance(rank(high), rank(volume), 5))"""
    ranked = AO.rank(AO.covariance(AO.rank(x.high), AO.rank(x.volume), 5))
    if len(ranked) == 0:
        return 0.0
    return -ranked[-1]


def alpha017(x: Alpha101Inputs) -> float:
    """((-1 * rank(ts_rank(close, 10))) * rank(delta(delta(close, 1), 1))) * rank(ts_rank(volume / adv20, 5))"""
    rank1 = AO.rank(AO.ts_rank(x.close, 10))
    rank2 = AO.rank(AO.delta(AO.delta(x.close, 1), 1))
    volume, adv20 = AO.tail_align(x.volume, x.adv20)
    rank3 = AO.rank(AO.ts_rank(volume / (adv20 + EPSILON), 5))
    if len(rank1) == 0 or len(rank2) == 0 or len(rank3) == 0:
        return 0.0
    return ((-1 * rank1[-1]) * rank2[-1]) * rank3[-1]


def alpha018(x: Alpha101Inputs) -> float:
    """-1 * rank(stddev(abs(close - open), 5) + (close - open) + correlation(close, open, 10))"""
    diff = x.close - x.open
    std = AO.stddev(AO.abs(diff), 5)
    corr = AO.correlation(x.close, x.open, 10)

    # stddev pairs from its oldest element, diff and corr from their newest
    size = min(len(std), len(diff), len(corr))
    combined = std[:size] + diff[len(diff) - size:] + corr[len(corr) - size:]
    ranked = AO.rank(combined)
    if len(ranked) == 0:
        return 0.0
    return -ranked[-1]


def alpha019(x: Alpha101Inputs) -> float:
    """(-1 * sign((close - delay(close, 7)) + delta(close, 7))) * (1 + rank(1 + sum(returns, 250)))"""
    close, delayed = AO.tail_align(x.close, AO.delay(x.close, 7))
    combined, delta_close = AO.tail_align(close - delayed, AO.delta(x.close, 7))
    combined = combined + delta_close
    if len(combined) == 0 or len(x.returns) < 250:
        return 0.0

    sign = AO.sign_value(combined[-1])
    sum_returns = AO.ts_sum(x.returns, 250)
    if len(sum_returns) == 0:
        return 0.0
    ranked = AO.rank(1 + sum_returns)
    return (-1 * sign) * (1 + ranked[-1])


def alpha020(x: Alpha101Inputs) -> float:
    """(-1 * rank(open - delay(high, 1))) * rank(open - delay(close, 1)) * rank(open - delay(low, 1))"""
    ranks = []
    for series in (x.high, x.close, x.low):
        open_, delayed = AO.tail_align(x.open, AO.delay(series, 1))
        ranks.append(AO.rank(open_ - delayed))
    rank1, rank2, rank3 = ranks
    if len(rank1) == 0 or len(rank2) == 0 or len(rank3) == 0:
        return 0.0
    return ((-1 * rank1[-1]) * rank2[-1]) * rank3[-1]


FORMULAS = {
    1: alpha001,
    2: alpha002,
    3: alpha003,
    4: alpha004,
    5: alpha005,
    6: alpha006,
    7: alpha007,
    8: alpha008,
    9: alpha009,
    10: alpha010,
    11: alpha011,
    12: alpha012,
    13: alpha013,
    14: alpha014,
    15: alpha015,
    16: alpha016,
    17: alpha017,
    18: alpha018,
    19: alpha019,
    20: alpha020,
}
