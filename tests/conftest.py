import numpy as np
import pandas as pd
import pytest
from scipy.special import expit

from core.schema import PERFORMANCE_LEVELS
from data_prep import prepare_dataset


def make_covariate_driven_rows(seed: int = 11) -> pd.DataFrame:
    """
    200 rows where sales and customer_rate drive promotion and performance is
    exactly independent of everything else.

    50 base rows (sales, customer_rate, promoted) are each repeated once per
    performance level. Three base covariate points carry both outcomes, which
    rules out separation, so every model family has a finite MLE.
    """
    rng = np.random.default_rng(seed)
    n_random = 44
    sales = rng.lognormal(mean=3.0, sigma=0.4, size=n_random)
    rate = rng.uniform(1.0, 5.0, size=n_random)
    zs = (sales - sales.mean()) / sales.std()
    zr = (rate - rate.mean()) / rate.std()
    promoted = (rng.random(n_random) < expit(1.5 * zs + 1.2 * zr)).astype(int)

    tie_points = [(15.0, 2.0), (22.0, 4.0), (30.0, 3.0)]
    for s, r in tie_points:
        sales = np.append(sales, [s, s])
        rate = np.append(rate, [r, r])
        promoted = np.append(promoted, [0, 1])

    base = pd.DataFrame({"sales": sales, "customer_rate": rate, "promoted": promoted})
    frames = [base.assign(performance=level) for level in PERFORMANCE_LEVELS]
    out = pd.concat(frames, ignore_index=True)
    out["promoted"] = out["promoted"].map({0: "No", 1: "Yes"})
    return out[["sales", "customer_rate", "performance", "promoted"]]


def make_performance_driven_rows(seed: int = 23) -> pd.DataFrame:
    """
    200 rows where promotion is exactly 'performance is at least Fair' and
    sales / customer_rate are unrelated noise.
    """
    rng = np.random.default_rng(seed)
    n = 200
    performance = [PERFORMANCE_LEVELS[i % 4] for i in range(n)]
    return pd.DataFrame({
        "sales": rng.lognormal(mean=3.0, sigma=0.4, size=n),
        "customer_rate": rng.uniform(1.0, 5.0, size=n),
        "performance": performance,
        "promoted": ["No" if p == "Poor" else "Yes" for p in performance],
        "employee_id": np.arange(n),  # extra columns are ignored
    })


@pytest.fixture
def covariate_rows() -> pd.DataFrame:
    return make_covariate_driven_rows()


@pytest.fixture
def performance_rows() -> pd.DataFrame:
    return make_performance_driven_rows()


@pytest.fixture
def covariate_dataset(covariate_rows):
    return prepare_dataset(covariate_rows)


@pytest.fixture
def performance_dataset(performance_rows):
    return prepare_dataset(performance_rows)


def make_high_seller_rows(seed: int = 5) -> pd.DataFrame:
    """
    201 rows with overlapping outcomes along sales, plus one promoted employee
    whose sales are far above everyone else's. The MLE is finite, but that row's
    fitted linear predictor is well past 20.
    """
    rng = np.random.default_rng(seed)
    n = 200
    sales = rng.uniform(0.5, 100.0, size=n)
    promoted = rng.random(n) < expit(0.08 * (sales - 50.0))
    rows = pd.DataFrame({
        "sales": np.append(sales, 600.0),
        "customer_rate": np.append(rng.uniform(1.0, 5.0, size=n), 3.0),
        "performance": rng.choice(PERFORMANCE_LEVELS, size=n + 1),
        "promoted": np.where(np.append(promoted, True), "Yes", "No"),
    })
    return rows


@pytest.fixture
def high_seller_rows() -> pd.DataFrame:
    return make_high_seller_rows()


@pytest.fixture
def high_seller_dataset(high_seller_rows):
    return prepare_dataset(high_seller_rows)


def make_random_performance_rows(seed: int, n: int = 200) -> pd.DataFrame:
    """
    sales and customer_rate drive promotion; performance is drawn uniformly at
    random, independently of everything else, so it is only orthogonal to the
    covariates in expectation.
    """
    rng = np.random.default_rng(seed)
    sales = rng.lognormal(mean=3.0, sigma=0.4, size=n)
    rate = rng.uniform(1.0, 5.0, size=n)
    zs = (sales - sales.mean()) / sales.std()
    zr = (rate - rate.mean()) / rate.std()
    promoted = rng.random(n) < expit(1.0 * zs + 0.8 * zr)
    return pd.DataFrame({
        "sales": sales,
        "customer_rate": rate,
        "performance": rng.choice(PERFORMANCE_LEVELS, size=n),
        "promoted": np.where(promoted, "Yes", "No"),
    })


@pytest.fixture
def random_performance_rows():
    return make_random_performance_rows
