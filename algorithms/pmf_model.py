"""Define the probabilistic matrix factorization shared by the PMF bandits.

Users and items get k-dimensional factors p_u and q_i; a rating is modelled as
r_ui ~ N(p_u . q_i, sigma^2). Factors are learnt by ridge regression:
    (lambda I + sum_i q_i q_i^T) p_u = sum_i r_ui q_i
alternating between users and items over the warm-up, then only the user side is
refreshed online, one rating at a time.
"""

import logging
import math

import numpy as np
import scipy.linalg
import torch

from core.contextual_bandit import InteractiveRecommender, rank_candidates

logger = logging.getLogger(__name__)


class FactorModel(object):
    def __init__(self, num_users, num_items, k=10, stdev_p=1.0, stdev_q=1.0, stdev=1.0, num_iter=10,
                 device='cpu'):
        """
        Args:
            k: int, number of latent factors
            stdev_p: float, prior standard deviation of the user factors
            stdev_q: float, prior standard deviation of the item factors
            stdev: float, standard deviation of the rating noise
            num_iter: int, number of ALS sweeps over the warm-up
            device: str or torch.device, where the warm-up sweeps run
        """
        if k <= 0:
            raise ValueError('k must be positive')
        if stdev_p <= 0 or stdev_q <= 0 or stdev <= 0:
            raise ValueError('Standard deviations must be positive')
        if num_iter < 0:
            raise ValueError('num_iter must be non-negative')
        self.num_users = num_users
        self.num_items = num_items
        self.k = k
        self.num_iter = num_iter
        self.device = torch.device(device)

        self.sigma2 = stdev ** 2
        self.lambda_p = stdev_p ** 2 / self.sigma2
        self.lambda_q = stdev_q ** 2 / self.sigma2

    def init(self, rng):
        """Cold start: zero user factors and small random item factors. """
        k = self.k
        eye = np.eye(k)
        self.P = np.zeros((self.num_users, k))
        self.Q = math.sqrt(1.0 / k) * rng.random((self.num_items, k))
        self.A = np.tile(self.lambda_p * eye, (self.num_users, 1, 1))
        self.b = np.zeros((self.num_users, k))
        self.cov_P = np.tile(self.sigma2 / self.lambda_p * eye, (self.num_users, 1, 1))
        self.cov_Q = np.tile(self.sigma2 / self.lambda_q * eye, (self.num_items, 1, 1))

    def _normal_equations(self, fixed, idx_fixed, idx_solved, values, n, lam):
        """Build the ridge systems A x = b of the `n` rows indexed by `idx_solved`. """
        k = fixed.shape[1]
        vecs = fixed[idx_fixed] # n_ratings, k
        A = lam * torch.eye(k, dtype=fixed.dtype, device=self.device).repeat(n, 1, 1)
        A.index_add_(0, idx_solved, vecs.unsqueeze(2) * vecs.unsqueeze(1))
        b = torch.zeros((n, k), dtype=fixed.dtype, device=self.device)
        b.index_add_(0, idx_solved, values.unsqueeze(1) * vecs)
        return A, b

    def _solve(self, A, b, current, rated):
        """Solve every system; rows without ratings keep their current factors. """
        solved = torch.linalg.solve(A, b.unsqueeze(-1)).squeeze(-1)
        return torch.where(rated.unsqueeze(1), solved, current)

    def train(self, ratings):
        """Alternating least squares over the warm-up.

        Args:
            ratings: list of (uidx, iidx, value)
        """
        if len(ratings) == 0:
            return
        uidxs = torch.tensor([r[0] for r in ratings], dtype=torch.long, device=self.device)
        iidxs = torch.tensor([r[1] for r in ratings], dtype=torch.long, device=self.device)
        values = torch.tensor([r[2] for r in ratings], dtype=torch.float64, device=self.device)
        user_rated = torch.bincount(uidxs, minlength=self.num_users) > 0
        item_rated = torch.bincount(iidxs, minlength=self.num_items) > 0

        P = torch.from_numpy(self.P).to(self.device)
        Q = torch.from_numpy(self.Q).to(self.device)
        A_q = None
        for it in range(self.num_iter):
            A_p, b_p = self._normal_equations(Q, iidxs, uidxs, values, self.num_users, self.lambda_p)
            P = self._solve(A_p, b_p, P, user_rated)
            A_q, b_q = self._normal_equations(P, uidxs, iidxs, values, self.num_items, self.lambda_q)
            Q = self._solve(A_q, b_q, Q, item_rated)
            residual = values - (P[uidxs] * Q[iidxs]).sum(dim=1)
            logger.debug('ALS sweep %d: rmse %.4f', it, torch.sqrt((residual ** 2).mean()).item())

        # user accumulators must agree with the final item factors for the online updates
        A_p, b_p = self._normal_equations(Q, iidxs, uidxs, values, self.num_users, self.lambda_p)
        P = self._solve(A_p, b_p, P, user_rated)
        eye = torch.eye(self.k, dtype=torch.float64, device=self.device)

        self.P = P.cpu().numpy()
        self.Q = Q.cpu().numpy()
        self.A = A_p.cpu().numpy()
        self.b = b_p.cpu().numpy()
        self.cov_P = self.sigma2 * torch.linalg.solve(A_p, eye.expand_as(A_p)).cpu().numpy()
        if A_q is not None:
            self.cov_Q = self.sigma2 * torch.linalg.solve(A_q, eye.expand_as(A_q)).cpu().numpy()

    def update(self, uidx, q, value):
        """Rank-1 update of the user's system with item vector q, then re-solve it. """
        self.A[uidx] += np.outer(q, q)
        self.b[uidx] += value * q
        rhs = np.column_stack([self.b[uidx], np.eye(self.k)])
        sol = scipy.linalg.solve(self.A[uidx], rhs, assume_a='pos')
        self.P[uidx] = sol[:, 0]
        self.cov_P[uidx] = self.sigma2 * sol[:, 1:]

    def mean(self, uidx, iidxs):
        return self.Q[iidxs].dot(self.P[uidx])

    def uncertainty(self, uidx, iidxs):
        """q_i^T Sigma_u q_i for each item. """
        Q = self.Q[iidxs]
        return np.einsum('ij,jk,ik->i', Q, self.cov_P[uidx], Q)


class PMFBanditRecommender(InteractiveRecommender):
    def __init__(self, num_users, num_items, k=10, stdev_p=1.0, stdev_q=1.0, stdev=1.0, num_iter=10,
                 ignore_not_rated=True, not_rated=0.0, rng_seed=0, device='cpu', name='PMFBandit'):
        """Recommender on top of a FactorModel; subclasses only decide how candidates are scored. """
        super(PMFBanditRecommender, self).__init__(num_users, num_items, ignore_not_rated, not_rated,
                                                   rng_seed, name)
        self.model = FactorModel(num_users, num_items, k, stdev_p, stdev_q, stdev, num_iter, device)

    def reset(self):
        self.model.init(self.rng)

    def train(self, ratings):
        self.model.train(ratings)

    def score(self, uidx, cand_items):
        """
        Return:
            scores: array of len(cand_items) floats
        """
        raise NotImplementedError

    def item_rec(self, uidx, cand_items, m=1):
        scores = self.score(uidx, cand_items)
        return [cand_items[j] for j in rank_candidates(scores, m, self.rng)]

    def item_vector(self, uidx, iidx):
        return self.model.Q[iidx]

    def update_method(self, uidx, iidx, value):
        self.model.update(uidx, self.item_vector(uidx, iidx), value)
