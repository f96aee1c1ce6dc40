"""Tests of the biased final state sampler and the scheme selector."""

import numpy as np
import pytest

from muon_mc.transport.context import Scheme, TransportContext
from muon_mc.transport.sampler import sample_final_state
from muon_mc.transport.scheme import CROSSOVER_KINETIC, apply_scheme, select_scheme


@pytest.mark.parametrize("u", [0.0, 0.25, 0.999999])
def test_point_estimate(u):
    kinetic, weight = sample_final_state(10.0, 10.0, u)
    assert kinetic == 10.0
    assert weight == 1.0


def test_log_uniform_bounds():
    kinetic, weight = sample_final_state(1.0, 100.0, 0.0)
    assert kinetic == 1.0
    assert weight == pytest.approx(np.log(100.0))

    kinetic, _ = sample_final_state(1.0, 100.0, 0.5)
    assert kinetic == pytest.approx(10.0)


def _integrate(f, kinetic_min, kinetic_max, n=40000, seed=11):
    rng = np.random.default_rng(seed)
    total = 0.0
    for u in rng.random(n):
        k, w = sample_final_state(kinetic_min, kinetic_max, u)
        total += w * f(k)
    return total / n


def test_weight_integrates_constant():
    estimate = _integrate(lambda k: 1.0, 1.0, 10.0)
    assert estimate == pytest.approx(9.0, rel=0.02)


def test_weight_integrates_linear():
    estimate = _integrate(lambda k: k, 1.0, 10.0)
    assert estimate == pytest.approx(49.5, rel=0.03)


def test_select_detailed():
    scheme, longitudinal, limit = select_scheme(10.0, 1e4)
    assert scheme is Scheme.DETAILED
    assert not longitudinal
    assert limit == CROSSOVER_KINETIC


@pytest.mark.parametrize("kinetic", [CROSSOVER_KINETIC, 150.0, 1e3])
def test_select_hybrid(kinetic):
    scheme, longitudinal, limit = select_scheme(kinetic, 1e4)
    assert scheme is Scheme.HYBRID
    assert longitudinal
    assert limit == 1e4


def test_apply_scheme(geometry):
    context = TransportContext.create(geometry, seed=0, forward=False)
    assert apply_scheme(context, 50.0, 2e3) is Scheme.DETAILED
    assert context.kinetic_limit == CROSSOVER_KINETIC
    assert apply_scheme(context, 200.0, 2e3) is Scheme.HYBRID
    assert context.kinetic_limit == 2e3
    assert context.longitudinal
