"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 11:40 AM

Removal (and later restoration) of the mean, the least squares plane and the range of
the observations. The mean is always removed; NormalizationMode.TREND also removes the
plane and NormalizationMode.RANGE scales the residuals to [-1, 1].
"""
from typing import Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)

# app
from ..core.type_declarations import NormalizationMode
from ..core.data_classes import NormalizationCoefficients
from .observations import ObservationSet


def normalize_observations(observations: ObservationSet,
                           mode: NormalizationMode = NormalizationMode.TREND | NormalizationMode.RANGE
                           ) -> Tuple[ObservationSet, NormalizationCoefficients]:
    """
    Return the residual observations and the coefficients needed to restore them

    The input set is not modified.
    """
    x, y = observations.x, observations.y
    coeff = dict(mode=NormalizationMode(mode))

    coeff['mean_u'] = float(np.mean(observations.u))
    coeff['mean_v'] = float(np.mean(observations.v))

    u = observations.u - coeff['mean_u']
    v = observations.v - coeff['mean_v']

    if mode & NormalizationMode.TREND:
        # solve for the LS plane using deviations from mean x, y, u, v
        coeff['mean_x'] = float(np.mean(x))
        coeff['mean_y'] = float(np.mean(y))
        xx = x - coeff['mean_x']
        yy = y - coeff['mean_y']

        sxx = np.sum(xx * xx)
        sxy = np.sum(xx * yy)
        syy = np.sum(yy * yy)
        sxu = np.sum(xx * u)
        sxv = np.sum(xx * v)
        syu = np.sum(yy * u)
        syv = np.sum(yy * v)

        d = sxx * syy - sxy * sxy
        # a degenerate geometry (e.g. collinear points) keeps the slopes at zero
        if d != 0.0:
            coeff['slope_ux'] = float((sxu * syy - sxy * syu) / d)
            coeff['slope_uy'] = float((sxx * syu - sxy * sxu) / d)
            coeff['slope_vx'] = float((sxv * syy - sxy * syv) / d)
            coeff['slope_vy'] = float((sxx * syv - sxy * sxv) / d)
        else:
            logger.debug('Normal equations of the planar trend are singular, slopes set to zero')

        u = u - (coeff.get('slope_ux', 0.0) * xx + coeff.get('slope_uy', 0.0) * yy)
        v = v - (coeff.get('slope_vx', 0.0) * xx + coeff.get('slope_vy', 0.0) * yy)

    if mode & NormalizationMode.RANGE:
        range_u = float(np.max(np.abs(u)))
        range_v = float(np.max(np.abs(v)))
        # zero range: residuals are all zero, leave them as they are
        coeff['range_u'] = range_u if range_u != 0.0 else 1.0
        coeff['range_v'] = range_v if range_v != 0.0 else 1.0
        u = u / coeff['range_u']
        v = v / coeff['range_v']

    coefficients = NormalizationCoefficients(**coeff)

    logger.debug(f'2-D Normalization coefficients: uoff = {coefficients.mean_u:g} '
                 f'uxslope = {coefficients.slope_ux:g} xmean = {coefficients.mean_x:g} '
                 f'uyslope = {coefficients.slope_uy:g} ymean = {coefficients.mean_y:g} '
                 f'urange = {coefficients.range_u:g}')
    logger.debug(f'2-D Normalization coefficients: voff = {coefficients.mean_v:g} '
                 f'vxslope = {coefficients.slope_vx:g} xmean = {coefficients.mean_x:g} '
                 f'vyslope = {coefficients.slope_vy:g} ymean = {coefficients.mean_y:g} '
                 f'vrange = {coefficients.range_v:g}')

    return observations.with_values(u, v), coefficients


def restore_normalization(x, y, u, v, coefficients: NormalizationCoefficients) -> Tuple[np.ndarray, np.ndarray]:
    """
    Undo normalize_observations for values u, v predicted at x, y

    The steps are applied in the reverse order of the forward pass: range first, then
    the mean and finally the plane evaluated at each point's own coordinates.
    """
    u = np.array(u, dtype=float)
    v = np.array(v, dtype=float)

    if coefficients.mode & NormalizationMode.RANGE:
        u *= coefficients.range_u
        v *= coefficients.range_v

    u += coefficients.mean_u
    v += coefficients.mean_v

    if coefficients.mode & NormalizationMode.TREND:
        xx = np.asarray(x, dtype=float) - coefficients.mean_x
        yy = np.asarray(y, dtype=float) - coefficients.mean_y
        u += coefficients.slope_ux * xx + coefficients.slope_uy * yy
        v += coefficients.slope_vx * xx + coefficients.slope_vy * yy

    return u, v
