import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import joblib
import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.metrics import accuracy_score, roc_auc_score

from flightweather.schema import DELAY_LABEL, WEATHER_PREDICTORS, require_columns

logger = logging.getLogger(__name__)


@dataclass
class ModelFit:
    """A fitted statsmodels result plus the bookkeeping shown in the report."""
    name: str
    kind: str
    response: str
    predictors: List[str]
    result: object
    n_obs: int
    n_dropped: int
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def formula(self) -> str:
        return f"{self.response} ~ {' + '.join(self.predictors)}"


def _complete_cases(df: pd.DataFrame, response: str, predictors: List[str]):
    require_columns(df, [response] + predictors, 'model input')
    data = df[[response] + predictors].apply(pd.to_numeric, errors='coerce')
    complete = data.dropna()
    dropped = len(data) - len(complete)
    if complete.empty:
        raise ValueError(f"No complete rows to fit {response} ~ {' + '.join(predictors)}")
    if dropped:
        logger.warning(f"Excluded {dropped} of {len(data)} rows with missing values from {response} model")
    return complete, dropped


def fit_delay_ols(df: pd.DataFrame, predictors: Optional[List[str]] = None,
                  response: str = 'dep_delay', name: str = 'linear') -> ModelFit:
    """
    Fits an ordinary least-squares model of departure delay on the weather predictors.

    Args:
        df: The joined flights + weather table.
        predictors: Weather columns to regress on. Defaults to all seven predictors.
        response: Column to model.
        name: Label used in the report and in saved artifacts.

    Returns:
        A ModelFit holding the statsmodels OLS results.
    """
    predictors = list(predictors or WEATHER_PREDICTORS)
    data, dropped = _complete_cases(df, response, predictors)

    logger.info(f"Fitting OLS {response} ~ {' + '.join(predictors)} on {len(data)} rows")
    X = sm.add_constant(data[predictors].astype(float), has_constant='add')
    result = sm.OLS(data[response].astype(float), X).fit()

    fit = ModelFit(name, 'ols', response, predictors, result, int(result.nobs), dropped)
    fit.metrics = {'r_squared': float(result.rsquared), 'adj_r_squared': float(result.rsquared_adj)}
    return fit


def fit_delay_logit(df: pd.DataFrame, predictors: Optional[List[str]] = None,
                    response: str = DELAY_LABEL, name: str = 'logistic') -> ModelFit:
    """
    Fits a logistic regression of the binary delay label on weather predictors.

    Rows with a missing label or predictor are excluded. The fit uses
    Newton-Raphson through statsmodels' Logit.
    """
    predictors = list(predictors or WEATHER_PREDICTORS)
    data, dropped = _complete_cases(df, response, predictors)

    logger.info(f"Fitting logit {response} ~ {' + '.join(predictors)} on {len(data)} rows")
    X = sm.add_constant(data[predictors].astype(float), has_constant='add')
    result = sm.Logit(data[response].astype(int), X).fit(disp=0)

    fit = ModelFit(name, 'logit', response, predictors, result, int(result.nobs), dropped)
    fit.metrics = {'pseudo_r_squared': float(result.prsquared)}
    fit.metrics.update(evaluate_logit(fit, data))
    return fit


def evaluate_logit(fit: ModelFit, df: pd.DataFrame, threshold: float = 0.5) -> Dict[str, float]:
    """
    Accuracy and ROC AUC of a logistic fit on `df` (rows with nulls are skipped).
    AUC is NaN when only one class is present.
    """
    data = df[[fit.response] + fit.predictors].apply(pd.to_numeric, errors='coerce').dropna()
    if data.empty:
        return {'accuracy': np.nan, 'roc_auc': np.nan}

    X = sm.add_constant(data[fit.predictors].astype(float), has_constant='add')
    y_true = data[fit.response].astype(int)
    y_proba = np.asarray(fit.result.predict(X))
    y_pred = (y_proba >= threshold).astype(int)

    roc_auc = roc_auc_score(y_true, y_proba) if y_true.nunique() > 1 else np.nan
    return {'accuracy': float(accuracy_score(y_true, y_pred)), 'roc_auc': float(roc_auc)}


def coefficient_table(fit: ModelFit) -> pd.DataFrame:
    """One row per model term: estimate, standard error, t/z statistic and p-value."""
    result = fit.result
    table = pd.DataFrame({
        'term': result.params.index,
        'estimate': result.params.values,
        'std_error': result.bse.values,
        'statistic': result.tvalues.values,
        'p_value': result.pvalues.values,
    })
    table['term'] = table['term'].replace({'const': '(Intercept)'})
    return table


def fit_weather_models(joined: pd.DataFrame, predictors: Optional[List[str]] = None) -> Dict[str, ModelFit]:
    """
    Fits the three report models: OLS on all predictors, univariate logit on
    visibility and multivariate logit on all predictors.
    """
    predictors = list(predictors or WEATHER_PREDICTORS)
    return {
        'linear': fit_delay_ols(joined, predictors, name='linear'),
        'logit_visibility': fit_delay_logit(joined, ['visib'], name='logit_visibility'),
        'logit_weather': fit_delay_logit(joined, predictors, name='logit_weather'),
    }


def save_models(fits: Dict[str, ModelFit], model_dir: str) -> Dict[str, str]:
    """Saves each fit with joblib and returns the written paths."""
    if not os.path.exists(model_dir):
        os.makedirs(model_dir)

    paths = {}
    for name, fit in fits.items():
        path = os.path.join(model_dir, f"{name}.joblib")
        joblib.dump(fit, path)
        paths[name] = path
        logger.info(f"Saved {name} model to {path}")
    return paths


def load_models(model_dir: str) -> Dict[str, ModelFit]:
    if not os.path.isdir(model_dir):
        raise FileNotFoundError(f"Model directory not found: {model_dir}")
    return {
        fname[:-len('.joblib')]: joblib.load(os.path.join(model_dir, fname))
        for fname in sorted(os.listdir(model_dir)) if fname.endswith('.joblib')
    }
