"""
Robust linear regression by the weighted BACON algorithm.

User-facing API: accepts arrays or a pandas DataFrame, validates the
input and runs the regression engine.
"""

import warnings
import numpy as np
import pandas as pd
from typing import Callable, List, Optional, Union

from ._backends import get_backend
from ._core.algorithm import BaconResult, wbacon_reg_core
from ._core.config import BaconConfig, PARALLEL_MIN_SIZE
from ._core.initial import initial_subset
from ._utils import check_array, check_subset, check_vector, check_weights


class BaconRegression:
    """
    Weighted BACON regression (Billor et al., 2000), robust against
    outliers in the response and in the design matrix.

    Examples
    --------
    >>> import pandas as pd
    >>> from pybacon import wbacon_reg
    >>>
    >>> model = wbacon_reg(y='income', X=['age', 'hours'], data=survey,
    ...                    weights='design_weight')
    >>> model.coef         # Named coefficients
    >>> model.outliers     # Observations outside the final subset
    >>> model.success      # False if the algorithm failed
    """

    def __init__(
        self,
        y: Union[str, np.ndarray],
        X: Union[List[str], np.ndarray],
        data: Optional[pd.DataFrame] = None,
        weights: Optional[Union[str, np.ndarray]] = None,
        intercept: bool = True,
        alpha: float = 0.05,
        collect: int = 4,
        maxiter: int = 50,
        subset: Optional[np.ndarray] = None,
        dist: Optional[np.ndarray] = None,
        sigma: Optional[float] = None,
        verbose: bool = False,
        backend: str = 'auto',
        n_jobs: Optional[int] = None,
        parallel_threshold: int = PARALLEL_MIN_SIZE,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        """
        Fit weighted BACON regression.

        Parameters
        ----------
        y : str or array
            Response variable
            - If string: column name in data
            - If array: numeric values
        X : list of str or array
            Predictor variables
            - If list of strings: column names in data
            - If array: numeric matrix (n x k)
        data : DataFrame, optional
            Dataset containing y and X variables
        weights : str or array, optional
            Non-negative observation weights (zero excludes an observation)
        intercept : bool
            Prepend a column of ones to X
        alpha : float
            Significance level of the Student-t cutoff
        collect : int
            The basic subset is grown to collect * p observations
        maxiter : int
            Maximum number of iterations of the re-weighting phase
        subset : array of bool, optional
            Starting subset; by default the collect * p observations
            closest to the coordinate-wise weighted median of X
        dist : array, optional
            Distances belonging to the starting subset
        sigma : float, optional
            Scale of the discrepancies (default: residual scale of the
            starting subset fit)
        verbose : bool
            Log the progress of the algorithm at INFO level
        backend : str
            Kernel backend: 'auto', 'cpu', 'pytorch'
        n_jobs : int, optional
            Worker threads of the CPU backend
        parallel_threshold : int
            Problem size n * p above which the kernels use threads
        should_stop : callable, optional
            Polled between iterations; returning True stops the run

        Examples
        --------
        >>> model = BaconRegression(y='mpg', X=['wt', 'hp'], data=mtcars)
        >>> model = BaconRegression(y=y_array, X=X_matrix, weights=w)
        """
        # Parse inputs
        if isinstance(y, str):
            if data is None:
                raise ValueError("Must provide data when y is a string")
            self.y_values = data[y].values
            self.y_name = y
        else:
            self.y_values = np.asarray(y)
            self.y_name = 'y'

        if isinstance(X, list) and all(isinstance(x, str) for x in X):
            if data is None:
                raise ValueError("Must provide data when X is list of strings")
            X_values = data[X].values
            self.X_names = list(X)
        else:
            X_values = np.asarray(X)
            if X_values.ndim == 1:
                X_values = X_values[:, np.newaxis]
            self.X_names = [f'x{i}' for i in range(X_values.shape[1])]

        if isinstance(weights, str):
            if data is None:
                raise ValueError("Must provide data when weights is a string")
            weights = data[weights].values

        X_values = check_array(X_values, name='X')
        self.n_obs = X_values.shape[0]
        self.y_values = check_vector(self.y_values, name='y', n=self.n_obs)
        self.weights_values = check_weights(weights, self.n_obs)

        if intercept:
            X_values = np.column_stack([np.ones(self.n_obs), X_values])
            self.var_names = ['Intercept'] + self.X_names
        else:
            self.var_names = list(self.X_names)
        self.X_values = X_values
        self.n_coef = X_values.shape[1]

        if self.n_obs <= self.n_coef:
            raise ValueError(
                f"Need more observations than coefficients: n={self.n_obs}, p={self.n_coef}"
            )

        self.config = BaconConfig(
            alpha=alpha, maxiter=maxiter, collect=collect, verbose=verbose,
            parallel_threshold=parallel_threshold, n_jobs=n_jobs,
        ).validate()
        if sigma is not None and not (np.isfinite(sigma) and sigma > 0):
            raise ValueError(f"sigma must be positive, got {sigma}")

        # Starting subset
        if subset is None:
            subset, start_dist = initial_subset(
                self.X_values, self.weights_values, collect * self.n_coef
            )
            dist = start_dist if dist is None else dist
        else:
            subset = check_subset(subset, self.n_obs)
            if dist is None:
                _, dist = initial_subset(self.X_values, self.weights_values, 1)
        dist = check_vector(dist, name='dist', n=self.n_obs)

        self.backend = get_backend(backend, n_jobs=n_jobs,
                                   parallel_threshold=parallel_threshold)
        self._result = wbacon_reg_core(
            self.X_values, self.y_values, self.weights_values,
            subset, dist,
            config=self.config,
            sigma=sigma,
            backend=self.backend,
            should_stop=should_stop,
        )
        self._extract_result()

        if not self.success:
            warnings.warn(
                f"BACON regression failed: {self.status.message()} "
                f"(stage: {self._result.stage})",
                RuntimeWarning
            )

    def _extract_result(self):
        """Copy the engine's result onto the model."""
        result = self._result
        self.coefficients = result.coefficients
        self.residuals = result.residuals
        self.subset = result.subset
        self.dist = result.dist
        self.m = result.m
        self.iterations = result.iterations
        self.success = result.success
        self.status = result.status
        self.sigma = result.sigma
        self.qr = result.qr
        self.chol = result.chol

    @property
    def result(self) -> BaconResult:
        """Raw result of the regression engine."""
        return self._result

    @property
    def outliers(self) -> np.ndarray:
        """Indicator of observations flagged as outliers."""
        return ~self.subset

    @property
    def coef(self):
        """Named coefficients (pandas Series)."""
        return pd.Series(self.coefficients, index=self.var_names)

    def __repr__(self):
        return (f"BaconRegression(n={self.n_obs}, p={self.n_coef}, m={self.m}, "
                f"success={self.success})")


def wbacon_reg(y, X, data=None, **kwargs):
    """
    Fit weighted BACON regression (convenience function).

    Parameters
    ----------
    y : str or array
        Response variable
    X : list of str or array
        Predictor variables
    data : DataFrame, optional
        Dataset
    **kwargs
        Additional arguments passed to BaconRegression

    Returns
    -------
    BaconRegression
        Fitted model object

    Examples
    --------
    >>> model = wbacon_reg(y='mpg', X=['wt', 'hp'], data=mtcars, alpha=0.05)
    >>> model.coef
    >>> model.outliers.sum()
    """
    return BaconRegression(y=y, X=X, data=data, **kwargs)
