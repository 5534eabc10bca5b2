"""
Alpha101 Formulas #21 - #40

Correlations between series of different lengths are empty by operator
contract, so formulas that pair such series (e.g. vwap with adv20)
fall back to 0.0.
"""

import numpy as np

from alphaquant.alpha_engine.primitives import EPSILON, AlphaOperators as AO
from alphaquant.alpha_engine.schemas import Alpha101Inputs


def _guard(values: np.ndarray) -> np.ndarray:
    """Replace near-zero denominators with EPSILON"""
    return np.where(np.abs(values) < EPSILON, EPSILON, values)


def alpha021(x: Alpha101Inputs) -> float:
    """Mean-reversion switch on the 8-bar band vs the 2-bar mean"""
    if len(x.close) < 8 or len(x.volume) == 0 or len(x.adv20) == 0:
        return 0.0

    sma8 = AO.sma(x.close, 8)
    sma2 = AO.sma(x.close, 2)
    std8 = AO.stddev(x.close, 8)
    if len(sma8) == 0 or len(sma2) == 0 or len(std8) == 0:
        return 0.0

    s8, s2, std = sma8[-1], sma2[-1], std8[-1]
    above_band = (s8 + std) < s2
    below_band = s2 < (s8 - std)
    heavy_volume = x.adv20[-1] / x.volume[-1] < 1.0

    if above_band or (not below_band and not heavy_volume):
        return -1.0
    return 1.0


def alpha022(x: Alpha101Inputs) -> float:
    """-1 * (delta(correlation(high, volume, 5), 5) * rank(stddev(close, 20)))"""
    delta_corr = AO.delta(AO.correlation(x.high, x.volume, 5), 5)
    ranked = AO.rank(AO.stddev(x.close, 20))
    if len(delta_corr) == 0 or len(ranked) == 0:
        return 0.0
    return -1 * delta_corr[-1] * ranked[-1]


def alpha023(x: Alpha101Inputs) -> float:
    """(sum(high, 20) / 20 < high) ? (-1 * delta(high, 2)) : 0"""
    if len(x.high) < 20:
        return 0.0
    sma_high = AO.sma(x.high, 20)
    if len(sma_high) == 0:
        return 0.0

    if sma_high[-1] < x.high[-1]:
        delta_high = AO.delta(x.high, 2)
        if len(delta_high):
            return -1 * delta_high[-1]
    return 0.0


def alpha024(x: Alpha101Inputs) -> float:
    """Long-horizon mean trend test, then distance from the 100-bar low or 3-bar reversal"""
    close = x.close
    if len(close) < 200:
        return 0.0

    delta_sma = AO.delta(AO.sma(close, 100), 100)
    delayed = AO.delay(close, 100)
    if len(delta_sma) == 0 or len(delayed) == 0:
        return 0.0

    base = delayed[-1]
    if abs(base) < EPSILON:
        base = EPSILON

    if delta_sma[-1] / base <= 0.05:
        ts_min = AO.ts_min(close, 100)
        if len(ts_min):
            return -1 * (close[-1] - ts_min[-1])

    delta3 = AO.delta(close, 3)
    if len(delta3):
        return -1 * delta3[-1]
    return 0.0


def alpha025(x: Alpha101Inputs) -> float:
    """rank(((-1 * returns) * adv20) * vwap * (high - close))"""
    returns, adv20, vwap, high, close = AO.tail_align(x.returns, x.adv20, x.vwap, x.high, x.close)
    if len(returns) == 0:
        return 0.0
    ranked = AO.rank(((-1 * returns) * adv20) * vwap * (high - close))
    return ranked[-1]


def alpha026(x: Alpha101Inputs) -> float:
    """-1 * ts_max(correlation(ts_rank(volume, 5), ts_rank(high, 5), 5), 3)"""
    corr = AO.correlation(AO.ts_rank(x.volume, 5), AO.ts_rank(x.high, 5), 5)
    ts_max = AO.ts_max(corr, 3)
    if len(ts_max) == 0:
        return 0.0
    return -ts_max[-1]


def alpha027(x: Alpha101Inputs) -> float:
    """(0.5 < rank(sum(correlation(rank(volume), rank(vwap), 6), 2) / 2)) ? -1 : 1"""
    corr = AO.correlation(AO.rank(x.volume), AO.rank(x.vwap), 6)
    sma_corr = AO.sma(corr, 2)
    if len(sma_corr) == 0:
        return 0.0
    ranked = AO.rank(sma_corr / 2.0)
    return AO.sign_value((ranked[-1] - 0.5) * (-2))


def alpha028(x: Alpha101Inputs) -> float:
    """scale((correlation(adv20, low, 5) + (high + low) / 2) - close)"""
    corr = AO.correlation(x.adv20, x.low, 5)
    corr, high, low, close = AO.tail_align(corr, x.high, x.low, x.close)
    if len(corr) == 0:
        return 0.0
    corr = np.where(np.isfinite(corr), corr, 0.0)
    scaled = AO.scale((corr + (high + low) / 2.0) - close, 1.0)
    return scaled[-1]


def alpha029(x: Alpha101Inputs) -> float:
    """Nested rank/scale chain over delta(close - 1, 5) plus ts_rank(delay(-1 * returns, 6), 5)"""
    rank1 = AO.rank(AO.delta(x.close - 1.0, 5))
    rank3 = AO.rank(AO.rank(-1 * rank1))
    logged = AO.log(AO.ts_sum(rank3, 2))
    rank5 = AO.rank(AO.rank(AO.scale(logged)))
    ts_min = AO.ts_min(rank5, 5)

    ts_rank_returns = AO.ts_rank(AO.delay(-1 * x.returns, 6), 5)
    if len(ts_min) == 0 or len(ts_rank_returns) == 0:
        return 0.0
    return ts_min[-1] + ts_rank_returns[-1]


def alpha030(x: Alpha101Inputs) -> float:
    """((1 - rank(sign(c - c1) + sign(c1 - c2) + sign(c2 - c3))) * sum(volume, 5)) / sum(volume, 20)"""
    close, delay1, delay2, delay3, _ = AO.tail_align(
        x.close, AO.delay(x.close, 1), AO.delay(x.close, 2), AO.delay(x.close, 3), x.volume
    )
    if len(close) == 0:
        return 0.0

    sign_sum = AO.sign(close - delay1) + AO.sign(delay1 - delay2) + AO.sign(delay2 - delay3)
    ranked = AO.rank(sign_sum)
    sum5 = AO.ts_sum(x.volume, 5)
    sum20 = AO.ts_sum(x.volume, 20)
    if len(ranked) == 0 or len(sum5) == 0 or len(sum20) == 0:
        return 0.0
    if abs(sum20[-1]) < EPSILON:
        return 0.0
    return ((1.0 - ranked[-1]) * sum5[-1]) / sum20[-1]


def alpha031(x: Alpha101Inputs) -> float:
    """rank^3(decay_linear(-1 * rank(rank(delta(close, 10))), 10)) + rank(-1 * delta(close, 3)) + sign(scale(corr(adv20, low, 12)))"""
    rank2 = AO.rank(AO.rank(AO.delta(x.close, 10)))
    decayed = AO.decay_linear(-1 * rank2, 10)
    rank5 = AO.rank(AO.rank(AO.rank(decayed)))
    rank6 = AO.rank(-1 * AO.delta(x.close, 3))
    scaled = AO.scale(AO.correlation(x.adv20, x.low, 12), 1.0)
    if len(rank5) == 0 or len(rank6) == 0 or len(scaled) == 0:
        return 0.0
    return rank5[-1] + rank6[-1] + AO.sign_value(scaled[-1])


def alpha032(x: Alpha101Inputs) -> float:
    """scale(sum(close, 7) / 7 - close) + 20 * scale(correlation(vwap, delay(close, 5), 230))"""
    sma7, close = AO.tail_align(AO.sma(x.close, 7), x.close)
    scaled1 = AO.scale(sma7 - close, 1.0)
    corr = AO.correlation(x.vwap, AO.delay(x.close, 5), 230)
    scaled2 = AO.scale(corr, 1.0)
    if len(scaled1) == 0 or len(scaled2) == 0:
        return 0.0
    return scaled1[-1] + (20 * scaled2[-1])


def alpha033(x: Alpha101Inputs) -> float:
    """rank(-1 * (1 - open / close))"""
    open_, close = AO.tail_align(x.open, x.close)
    if len(open_) == 0:
        return 0.0
    ranked = AO.rank(-1 * (1.0 - open_ / _guard(close)))
    return ranked[-1]


def alpha034(x: Alpha101Inputs) -> float:
    """(1 - rank(stddev(returns, 2) / stddev(returns, 5))) + (1 - rank(delta(close, 1)))"""
    # The two stddev series are paired from their oldest elements
    std2, std5 = AO.head_align(AO.stddev(x.returns, 2), AO.stddev(x.returns, 5))
    if len(std2) == 0:
        return 0.0
    rank1 = AO.rank(std2 / _guard(std5))
    rank2 = AO.rank(AO.delta(x.close, 1))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return (1.0 - rank1[-1]) + (1.0 - rank2[-1])


def alpha035(x: Alpha101Inputs) -> float:
    """(Ts_Rank(volume, 32) * (1 - Ts_Rank(close + high - low, 16))) * (1 - Ts_Rank(returns, 32))"""
    ts_rank_volume = AO.ts_rank(x.volume, 32)
    ts_rank_chl = AO.ts_rank((x.close + x.high) - x.low, 16)
    ts_rank_returns = AO.ts_rank(x.returns, 32)
    if len(ts_rank_volume) == 0 or len(ts_rank_chl) == 0 or len(ts_rank_returns) == 0:
        return 0.0
    return (ts_rank_volume[-1] * (1.0 - ts_rank_chl[-1])) * (1.0 - ts_rank_returns[-1])


def alpha036(x: Alpha101Inputs) -> float:
    """Weighted sum of five ranks (price/volume correlation, gap, lagged returns, vwap/adv, trend)"""
    rank1 = AO.rank(AO.correlation(x.close - x.open, AO.delay(x.volume, 1), 15))
    rank2 = AO.rank(x.open - x.close)
    rank3 = AO.rank(AO.ts_rank(AO.delay(-1 * x.returns, 6), 5))
    rank4 = AO.rank(AO.abs(AO.correlation(x.vwap, x.adv20, 6)))

    sma200, open_, close = AO.tail_align(AO.sma(x.close, 200), x.open, x.close)
    rank5 = AO.rank((sma200 - open_) * (close - open_))

    if any(len(r) == 0 for r in (rank1, rank2, rank3, rank4, rank5)):
        return 0.0
    return ((2.21 * rank1[-1]) + (0.7 * rank2[-1]) + (0.73 * rank3[-1])
            + rank4[-1] + (0.6 * rank5[-1]))


def alpha037(x: Alpha101Inputs) -> float:
    """rank(correlation(delay(open - close, 1), close, 200)) + rank(open - close)"""
    open_close = x.open - x.close
    rank1 = AO.rank(AO.correlation(AO.delay(open_close, 1), x.close, 200))
    rank2 = AO.rank(open_close)
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return rank1[-1] + rank2[-1]


def alpha038(x: Alpha101Inputs) -> float:
    """(-1 * rank(Ts_Rank(open, 10))) * rank(close / open)"""
    rank1 = AO.rank(AO.ts_rank(x.open, 10))
    open_, close = AO.tail_align(x.open, x.close)
    rank2 = AO.rank(close / _guard(open_))
    if len(rank1) == 0 or len(rank2) == 0:
        return 0.0
    return -1 * rank1[-1] * rank2[-1]


def alpha039(x: Alpha101Inputs) -> float:
    """(-1 * rank(delta(close, 7) * (1 - rank(decay_linear(volume / adv20, 9))))) * (1 + rank(sum(returns, 250)))"""
    delta7 = AO.delta(x.close, 7)
    volume, adv20 = AO.tail_align(x.volume, x.adv20)
    ranked1 = AO.rank(AO.decay_linear(volume / _guard(adv20), 9))
    ranked2 = AO.rank(AO.ts_sum(x.returns, 250))
    if len(delta7) == 0 or len(ranked1) == 0 or len(ranked2) == 0:
        return 0.0

    # Ranking a single value is 0/0, so this is NaN whenever it is computable
    part1 = -1 * (delta7[-1] * (1.0 - ranked1[-1]))
    ranked_part1 = AO.rank([part1])
    return -1 * ranked_part1[0] * (1.0 + ranked2[-1])


def alpha040(x: Alpha101Inputs) -> float:
    """(-1 * rank(stddev(high, 10))) * correlation(high, volume, 10)"""
    ranked = AO.rank(AO.stddev(x.high, 10))
    corr = AO.correlation(x.high, x.volume, 10)
    if len(ranked) == 0 or len(corr) == 0:
        return 0.0
    return -1 * ranked[-1] * corr[-1]


FORMULAS = {
    21: alpha021,
    22: alpha022,
    23: alpha023,
    24: alpha024,
    25: alpha025,
    26: alpha026,
    27: alpha027,
    28: alpha028,
    29: alpha029,
    30: alpha030,
    31: alpha031,
    32: alpha032,
    33: alpha033,
    34: alpha034,
    35: alpha035,
    36: alpha036,
    37: alpha037,
    38: alpha038,
    39: alpha039,
    40: alpha040,
}
