"""Tests of the recommendation loop: selection, disclosed facts, warm-up, end conditions and replay. """

import math

import numpy as np
import pytest

from algorithms.item_bandit import ItemBanditRecommender
from algorithms.thompson_sampling import ThompsonSampling, DelayedThompsonSampling
from algorithms.ucb import UCB1
from algorithms.uniform_random import UniformRandom
from core.dataset import Dataset, ContactDataset, KnowledgeDataset, KnowledgeDataUse, StreamDataset
from core.end_condition import NumIterEndCondition, PercentagePositiveRatingsEndCondition
from core.runner import RecommendationLoop, LoopState
from core.selection import (NonSequentialSelection, SequentialSelection, RoundRobinUserSelector,
                            RandomRoundRobinUserSelector)
from core.update import GeneralUpdate, ContactUpdate, WithKnowledgeUpdate, ReplayerUpdate
from core.warmup import Warmup, ContactWarmup, WarmupType
from utils.metrics import CumulativeRecall, ClickThroughRate


def make_dataset():
    # u3 has no ratings and must never be targeted
    ratings = [(0, 0, 1.0), (0, 1, 0.0), (0, 3, 1.0), (1, 2, 1.0), (1, 4, 1.0), (2, 0, 1.0)]
    return Dataset(['u0', 'u1', 'u2', 'u3'], ['i0', 'i1', 'i2', 'i3', 'i4'], ratings)


def make_loop(dataset, learner=None, end_condition=None, cutoff=1, user_selector=None, seed=9):
    if learner is None:
        learner = ItemBanditRecommender(dataset.num_users(), dataset.num_items(), UCB1(dataset.num_items(), rng_seed=4))
    metrics = {'recall': CumulativeRecall(dataset.threshold)}
    return RecommendationLoop(dataset, learner, NonSequentialSelection(user_selector), GeneralUpdate(), metrics,
                              end_condition, rng_seed=seed, cutoff=cutoff)


def run_to_end(loop):
    decisions = []
    while True:
        step = loop.next_iteration()
        if step is None:
            return decisions
        decisions.append((step[1], list(step[2])))


def test_loop_must_be_initialized():
    loop = make_loop(make_dataset())
    assert loop.state == LoopState.UNINITIALIZED
    with pytest.raises(RuntimeError):
        loop.next_iteration()
    loop.init()
    assert loop.state == LoopState.READY


def test_availability_is_never_repeated():
    loop = make_loop(make_dataset())
    loop.init()
    decisions = run_to_end(loop)
    pairs = [(uidx, iidx) for uidx, iidxs in decisions for iidx in iidxs]
    assert len(pairs) == len(set(pairs))
    assert len(pairs) == 15
    assert all(uidx != 3 for uidx, _ in pairs)
    assert loop.state == LoopState.ENDED
    assert loop.next_iteration() is None
    assert loop.metric_values()['recall'] == pytest.approx(1.0)


def test_cutoff_recommends_distinct_items():
    loop = make_loop(make_dataset(), cutoff=2)
    loop.init()
    decisions = run_to_end(loop)
    pairs = [(uidx, iidx) for uidx, iidxs in decisions for iidx in iidxs]
    assert all(1 <= len(iidxs) <= 2 for _, iidxs in decisions)
    assert len(pairs) == len(set(pairs)) == 15
    assert len(decisions) == 9


def test_same_seed_same_decisions():
    first = make_loop(make_dataset())
    first.init()
    second = make_loop(make_dataset())
    second.init()
    assert run_to_end(first) == run_to_end(second)

    # init() restarts the run from scratch
    first.init()
    second.init()
    assert run_to_end(first) == run_to_end(second)


def test_round_robin_visits_every_user():
    for selector in (RoundRobinUserSelector(), RandomRoundRobinUserSelector()):
        loop = make_loop(make_dataset(), user_selector=selector)
        loop.init()
        targets = [loop.next_iteration()[1] for _ in range(6)]
        assert sorted(targets[:3]) == [0, 1, 2]
        assert sorted(targets[3:]) == [0, 1, 2]


def test_warmup_equals_replayed_history():
    dataset = make_dataset()
    pairs = [(0, 0), (0, 1), (1, 2)]

    def learner():
        return ItemBanditRecommender(4, 5, ThompsonSampling(5, rng_seed=4), rng_seed=4)

    warm = make_loop(dataset, learner())
    warm.init(Warmup.load(dataset, pairs))
    cold = make_loop(dataset, learner())
    cold.init()
    for uidx, iidx in pairs:
        cold.update(uidx, [iidx])

    assert np.array_equal(warm.learner.bandit.alphas, cold.learner.bandit.alphas)
    assert np.array_equal(warm.learner.bandit.betas, cold.learner.bandit.betas)
    for uidx in range(4):
        assert warm.selection.select_candidates(uidx) == cold.selection.select_candidates(uidx)
    for _ in range(5):
        assert warm.next_iteration()[1:] == cold.next_iteration()[1:]


def test_warmup_types():
    dataset = make_dataset()
    pairs = [(0, 0), (0, 2), (1, 2)]
    warmup = Warmup.load(dataset, pairs, WarmupType.ONLY_RATINGS)
    assert len(warmup.clean_training) == 2
    assert len(warmup.full_training) == 2
    assert warmup.num_rel == 2
    assert warmup.availability.is_available(0, 2)

    warmup = Warmup.load(dataset, pairs, WarmupType.FULL)
    assert len(warmup.clean_training) == 2
    assert len(warmup.full_training) == 3
    assert math.isnan(warmup.full_training[1].value)
    assert not warmup.availability.is_available(0, 2)
    assert WarmupType.from_string('onlyratings') == WarmupType.ONLY_RATINGS


def test_recall_discounts_warmup():
    dataset = make_dataset()
    loop = make_loop(dataset)
    loop.init(Warmup.load(dataset, [(0, 0), (1, 2)]))
    loop.update(0, [3])
    assert loop.metric_values()['recall'] == pytest.approx(1.0 / 3.0)


def test_num_iter_end_condition():
    loop = make_loop(make_dataset(), end_condition=NumIterEndCondition(3))
    loop.init()
    assert len(run_to_end(loop)) == 3
    assert loop.state == LoopState.ENDED


def test_percentage_end_condition():
    dataset = make_dataset()
    end = PercentagePositiveRatingsEndCondition(dataset.num_rel, 0.4, dataset.threshold)
    assert end.target == 2
    loop = make_loop(dataset, end_condition=end)
    loop.init()
    run_to_end(loop)
    assert end.actual == 2
    assert loop.metric_values()['recall'] == pytest.approx(0.4)
    assert PercentagePositiveRatingsEndCondition(5, 0.5, 0.5).target == 3


@pytest.mark.parametrize('bandit', [ThompsonSampling, DelayedThompsonSampling])
def test_thompson_sampling_over_graded_ratings(bandit):
    ratings = [(0, 0, 5.0), (0, 1, 3.0), (0, 2, 4.0), (1, 0, 1.0), (1, 1, 5.0), (1, 2, 2.0)]
    dataset = Dataset(['u0', 'u1'], ['i0', 'i1', 'i2'], ratings, threshold=4)
    learner = ItemBanditRecommender(2, 3, bandit(3, rng_seed=2), relevance=dataset.is_relevant)
    loop = make_loop(dataset, learner)
    loop.init()
    assert len(run_to_end(loop)) == 6
    stats = [learner.get_stats(iidx) for iidx in range(3)]
    assert stats == [(1, 1), (1, 1), (1, 1)]
    assert loop.metric_values()['recall'] == pytest.approx(1.0)


def contact_loop(dataset, not_reciprocal=False):
    learner = UniformRandom(dataset.num_users(), dataset.num_items())
    metrics = {'recall': CumulativeRecall(dataset.threshold)}
    return RecommendationLoop(dataset, learner, NonSequentialSelection(), ContactUpdate(not_reciprocal), metrics)


def test_contact_undirected_update():
    dataset = ContactDataset.from_edges([('a', 'b'), ('b', 'c')], directed=False)
    assert dataset.num_rel == 4
    loop = contact_loop(dataset)
    loop.init()
    assert 0 not in loop.selection.select_candidates(0)
    learner_facts, metric_facts = loop.update_strategy.select_update(0, 1, loop.selection)
    assert [(r.uidx, r.iidx, r.value) for r in learner_facts] == [(0, 1, 1.0), (1, 0, 1.0)]
    assert [(r.uidx, r.iidx) for r in metric_facts] == [(0, 1)]
    loop.update(0, [1])
    assert not loop.selection.is_available(0, 1)
    assert not loop.selection.is_available(1, 0)
    assert loop.metric_values()['recall'] == pytest.approx(0.25)


def test_contact_directed_not_reciprocal():
    edges = [('a', 'b'), ('b', 'a'), ('a', 'c')]
    dataset = ContactDataset.from_edges(edges, directed=True, not_reciprocal=True)
    assert dataset.num_recipr == 2
    assert dataset.num_rel == 2
    loop = contact_loop(dataset, not_reciprocal=True)
    loop.init()
    learner_facts, metric_facts = loop.update_strategy.select_update(0, 1, loop.selection)
    assert [(r.uidx, r.iidx, r.value) for r in learner_facts] == [(0, 1, 1.0), (1, 0, 1.0)]
    assert len(metric_facts) == 1
    loop.update(0, [1])
    assert not loop.selection.is_available(1, 0)

    dataset = ContactDataset.from_edges(edges, directed=True)
    assert dataset.num_rel == 3
    loop = contact_loop(dataset)
    loop.init()
    loop.update(0, [1])
    assert loop.selection.is_available(1, 0)


def test_contact_missing_link_is_negative():
    dataset = ContactDataset.from_edges([('a', 'b'), ('b', 'a'), ('a', 'c')], directed=True)
    loop = contact_loop(dataset)
    loop.init()
    learner_facts, _ = loop.update_strategy.select_update(1, 2, loop.selection)
    assert [(r.uidx, r.iidx, r.value) for r in learner_facts] == [(1, 2, 0.0)]
    loop.update(1, [2])
    assert not loop.selection.is_available(1, 2)
    assert loop.metric_values()['recall'] == 0.0


def test_contact_warmup_removes_reverse_link():
    dataset = ContactDataset.from_edges([('a', 'b'), ('b', 'c')], directed=False)
    warmup = ContactWarmup.load(dataset, [(1, 0)])
    assert not warmup.availability.is_available(1, 0)
    assert not warmup.availability.is_available(0, 1)
    assert not warmup.availability.is_available(2, 2)
    assert warmup.num_rel == 1
    update = ContactUpdate()
    update.init(dataset)
    facts = update.warmup_facts(warmup)
    assert [(r.uidx, r.iidx) for r in facts] == [(1, 0), (0, 1)]


def test_knowledge_update():
    quadruplets = [('u', 'a', 1.0, True), ('u', 'b', 1.0, False), ('v', 'a', 0.0, False)]
    dataset = KnowledgeDataset.from_quadruplets(quadruplets)
    assert dataset.subset_num_rel(KnowledgeDataUse.ONLY_KNOWN) == 1
    assert dataset.subset_num_rel(KnowledgeDataUse.ONLY_UNKNOWN) == 1
    assert dataset.subset_num_rel(KnowledgeDataUse.ALL) == 2

    update = WithKnowledgeUpdate(KnowledgeDataUse.ONLY_KNOWN)
    loop = RecommendationLoop(dataset, UniformRandom(2, 2), NonSequentialSelection(), update)
    loop.init()
    learner_facts, _ = update.select_update(0, 1, loop.selection)
    assert math.isnan(learner_facts[0].value)
    learner_facts, _ = update.select_update(0, 0, loop.selection)
    assert learner_facts[0].value == 1.0
    assert KnowledgeDataUse.from_string('unknown') == KnowledgeDataUse.ONLY_UNKNOWN


def test_replayer_discloses_only_logged_item():
    records = [('u1', 'i1', 1.0, ['i2']), ('u2', 'i2', 0.0, ['i1'])]
    dataset = StreamDataset.from_records(records)
    assert dataset.num_rel == 1
    update = ReplayerUpdate()
    selection = SequentialSelection()
    selection.init(dataset, np.random.default_rng(0))
    update.init(dataset)
    assert selection.select_target() == 0
    assert sorted(selection.select_candidates(0)) == [0, 1]
    learner_facts, metric_facts = update.select_update(0, 0, selection)
    assert [(r.uidx, r.iidx, r.value) for r in metric_facts] == [(0, 0, 1.0)]
    assert update.select_update(0, 1, selection) == ([], [])

    loop = RecommendationLoop(dataset, UniformRandom(2, 2), SequentialSelection(), ReplayerUpdate(),
                              {'ctr': ClickThroughRate()})
    loop.init()
    assert len(run_to_end(loop)) == 2
    assert loop.state == LoopState.ENDED


def test_replay_continues_like_an_uninterrupted_run():
    full = make_loop(make_dataset())
    full.init()
    expected = run_to_end(full)

    interrupted = make_loop(make_dataset())
    interrupted.init()
    recorded = [interrupted.next_iteration() for _ in range(6)]

    resumed = make_loop(make_dataset())
    resumed.init()
    for _, uidx, iidxs in recorded:
        resumed.replay(uidx, iidxs)
    assert resumed.num_iter == 6
    assert [(u, list(i)) for _, u, i in recorded] + run_to_end(resumed) == expected
