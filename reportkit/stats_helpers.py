"""Reusable statistics computation helpers."""
import numpy as np
import pandas as pd
from scipy import stats


def descriptive_stats(series):
    """Compute comprehensive descriptive statistics for a numeric series."""
    return {
        "count": len(series),
        "mean": series.mean(),
        "median": series.median(),
        "std": series.std(),
        "min": series.min(),
        "max": series.max(),
        "q25": series.quantile(0.25),
        "q75": series.quantile(0.75),
        "iqr": series.quantile(0.75) - series.quantile(0.25),
        "skewness": series.skew(),
        "kurtosis": series.kurtosis(),
    }


def cohens_d(group1, group2):
    """Compute Cohen's d effect size."""
    n1, n2 = len(group1), len(group2)
    var1, var2 = group1.var(), group2.var()
    pooled_std = np.sqrt(((n1 - 1) * var1 + (n2 - 1) * var2) / (n1 + n2 - 2))
    return (group1.mean() - group2.mean()) / pooled_std


def normality_test(data):
    """Jarque-Bera on the full sample and Shapiro-Wilk on at most 5000 points."""
    data = np.asarray(data)
    jb_stat, jb_p = stats.jarque_bera(data)
    sample = data
    if len(sample) > 5000:
        sample = np.random.RandomState(42).choice(sample, 5000, replace=False)
    sw_stat, sw_p = stats.shapiro(sample)
    return {"jb_stat": jb_stat, "jb_p_value": jb_p, "sw_stat": sw_stat, "sw_p_value": sw_p}


def correlation_matrix(df, method="pearson"):
    """Compute correlation matrix for numeric columns."""
    numeric = df.select_dtypes(include=[np.number])
    return numeric.corr(method=method)


def perform_ttest(group1, group2, equal_var=False):
    """Perform independent samples t-test."""
    stat, p = stats.ttest_ind(group1, group2, equal_var=equal_var)
    d = cohens_d(group1, group2)
    return {"t_stat": stat, "p_value": p, "cohens_d": d}


def chi_square_test(df, column, outcome):
    """Chi-square test of independence between a categorical column and an outcome.

    Returns the statistic, p-value, degrees of freedom, Cramer's V and the
    outcome rate per level of ``column``.
    """
    table = pd.crosstab(df[column], df[outcome])
    if table.shape[0] < 2 or table.shape[1] < 2:
        raise ValueError(f"{column!r} x {outcome!r} needs at least a 2x2 table")
    chi2, p, dof, _ = stats.chi2_contingency(table)
    n = table.to_numpy().sum()
    cramers_v = np.sqrt(chi2 / (n * (min(table.shape) - 1)))
    rates = df.groupby(column, observed=True)[outcome].mean()
    return {"chi2": chi2, "p_value": p, "dof": dof, "cramers_v": cramers_v, "rates": rates}
