"""Unit tests of the probabilistic matrix factorization bandits. """

import numpy as np
import pytest

from algorithms.linucb import LinUCBPMF, GLMUCBPMF
from algorithms.pmf_greedy import EpsilonGreedyPMF
from algorithms.pmf_model import FactorModel
from algorithms.pmf_thompson import ThompsonSamplingPMF
from core.contextual_bandit import InvalidIndexError
from core.dataset import Dataset
from core.runner import RecommendationLoop
from core.selection import NonSequentialSelection
from core.update import GeneralUpdate

PMF_LEARNERS = [
    lambda: EpsilonGreedyPMF(3, 6, epsilon=0.2, k=2, rng_seed=1),
    lambda: LinUCBPMF(3, 6, alpha=1.0, k=2, rng_seed=1),
    lambda: GLMUCBPMF(3, 6, alpha=1.0, k=2, rng_seed=1),
    lambda: ThompsonSamplingPMF(3, 6, k=2, rng_seed=1),
]


def test_factor_model_prior():
    model = FactorModel(2, 3, k=2, stdev_p=1.0, stdev_q=2.0, stdev=0.5)
    assert model.lambda_p == pytest.approx(4.0)
    assert model.lambda_q == pytest.approx(16.0)
    model.init(np.random.default_rng(0))
    assert np.allclose(model.P, 0.0)
    assert model.Q.shape == (3, 2)
    assert np.allclose(model.cov_P[1], 0.0625 * np.eye(2))
    assert np.allclose(model.cov_Q[0], 0.015625 * np.eye(2))
    with pytest.raises(ValueError):
        FactorModel(2, 3, k=0)
    with pytest.raises(ValueError):
        FactorModel(2, 3, stdev=0.0)


def test_factor_model_online_update():
    model = FactorModel(2, 3, k=2, stdev_p=1.0, stdev=0.5)
    model.init(np.random.default_rng(0))
    q = model.Q[1].copy()
    model.update(0, q, 1.0)
    A = 4.0 * np.eye(2) + np.outer(q, q)
    assert np.allclose(model.A[0], A)
    assert np.allclose(model.P[0], np.linalg.solve(A, q))
    assert np.allclose(model.cov_P[0], 0.25 * np.linalg.inv(A))
    assert np.allclose(model.P[1], 0.0)


def test_factor_model_als():
    model = FactorModel(3, 3, k=2, num_iter=5)
    model.init(np.random.default_rng(3))
    untouched = model.Q[2].copy()
    model.train([(0, 0, 1.0), (0, 1, 0.0), (1, 1, 1.0)])

    assert np.all(np.isfinite(model.P))
    assert np.all(np.isfinite(model.Q))
    assert np.allclose(model.Q[2], untouched)
    assert np.allclose(model.P[2], 0.0)
    Q = model.Q
    expected = model.lambda_p * np.eye(2) + np.outer(Q[0], Q[0]) + np.outer(Q[1], Q[1])
    assert np.allclose(model.A[0], expected)
    for uidx in range(3):
        assert np.allclose(model.A[uidx].dot(model.P[uidx]), model.b[uidx])
        assert np.allclose(model.cov_P[uidx], model.sigma2 * np.linalg.inv(model.A[uidx]))


def test_factor_model_empty_warmup():
    model = FactorModel(2, 2, k=2)
    model.init(np.random.default_rng(0))
    Q = model.Q.copy()
    model.train([])
    assert np.allclose(model.Q, Q)
    assert np.allclose(model.P, 0.0)


@pytest.mark.parametrize('make', PMF_LEARNERS)
def test_rated_items_are_never_recommended_again(make):
    ratings = [(0, 2, 1.0), (0, 5, 0.0), (1, 0, 1.0), (2, 3, 1.0)]
    dataset = Dataset(['u0', 'u1', 'u2'], ['i{}'.format(i) for i in range(6)], ratings)
    loop = RecommendationLoop(dataset, make(), NonSequentialSelection(), GeneralUpdate(), rng_seed=2)
    loop.init()
    loop.update(0, [2])
    loop.update(0, [5])
    cands = loop.selection.select_candidates(0)
    assert sorted(cands) == [0, 1, 3, 4]
    for _ in range(20):
        assert loop.learner.next(0, cands) in cands
    assert len(set(loop.learner.next_list(0, cands, 4))) == 4


@pytest.mark.parametrize('make', PMF_LEARNERS)
def test_same_seed_same_recommendations(make):
    a, b = make(), make()
    warmup = [(0, 1, 1.0), (1, 2, 0.0), (2, 1, 1.0)]
    a.init(warmup)
    b.init(warmup)
    for step in range(6):
        cands = [0, 1, 2, 3, 4, 5]
        rec_a, rec_b = a.next(step % 3, cands), b.next(step % 3, cands)
        assert rec_a == rec_b
        a.update(step % 3, rec_a, 1.0)
        b.update(step % 3, rec_b, 1.0)


@pytest.mark.parametrize('make', PMF_LEARNERS)
def test_out_of_range_updates(make):
    learner = make()
    learner.init()
    with pytest.raises(InvalidIndexError):
        learner.update(3, 0, 1.0)
    with pytest.raises(InvalidIndexError):
        learner.update(0, 6, 1.0)


def test_linucb_score_at_cold_start():
    learner = LinUCBPMF(1, 2, alpha=2.0, k=2, stdev_p=1.0, stdev=1.0)
    learner.init()
    Q = learner.model.Q
    expected = 2.0 * np.linalg.norm(Q, axis=1)
    assert np.allclose(learner.score(0, [0, 1]), expected)


def test_glmucb_counters():
    learner = GLMUCBPMF(2, 3, k=2)
    learner.init([(0, 0, 1.0), (0, 1, 0.0)])
    assert learner.counters[0] == 3
    assert learner.counters[1] == 1
    learner.update(0, 2, 1.0)
    assert learner.counters[0] == 4
    # cold users have no exploration bonus: log(1) == 0
    assert np.all(learner.score(1, [0, 1, 2]) <= 1.0)
    learner.init()
    assert learner.counters[0] == 1


def test_thompson_updates_with_sampled_vector():
    learner = ThompsonSamplingPMF(2, 3, k=2, rng_seed=5)
    learner.init()
    rec = learner.next(0, [0, 1, 2])
    q = learner.last_samples[(0, rec)].copy()
    assert not np.allclose(q, learner.model.Q[rec])
    learner.update(0, rec, 1.0)
    assert np.allclose(learner.model.b[0], q)
    assert (0, rec) not in learner.last_samples

    other = [i for i in range(3) if i != rec][0]
    learner.update(0, other, 1.0)
    assert np.allclose(learner.model.b[0], q + learner.model.Q[other])


def test_thompson_samples_a_single_candidate():
    learner = ThompsonSamplingPMF(1, 3, k=2, rng_seed=5)
    learner.init()
    assert learner.next(0, []) is None
    assert learner.next(0, [2]) == 2
    q = learner.last_samples[(0, 2)].copy()
    assert not np.allclose(q, learner.model.Q[2])
    learner.update(0, 2, 1.0)
    assert np.allclose(learner.model.b[0], q)


def test_epsilon_greedy_pmf_exploits():
    learner = EpsilonGreedyPMF(1, 3, epsilon=0.0, k=2)
    learner.init()
    learner.model.P[0] = [1.0, 0.0]
    learner.model.Q = np.array([[0.1, 0.0], [0.9, 0.0], [0.5, 0.0]])
    assert learner.item_rec(0, [0, 1, 2], 2) == [1, 2]
    assert learner.next(0, [0, 2]) == 2
