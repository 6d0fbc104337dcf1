"""Tests for summary statistics of bootstrapped predictions and model evaluation."""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from conftest import FixedModel, make_replicate
from urbankfs.bootstrap import predict_bootstrap
from urbankfs.errors import EmptyGroupError
from urbankfs.sigmastats import evaluate_predictions, quantile_labels, summarize_predictions, summary_se


def test_quantile_labels():
    assert quantile_labels([0.05, 0.5, 0.95]) == ["q050", "q500", "q950"]
    assert quantile_labels([0.025, 0.975]) == ["q025", "q975"]
    with pytest.raises(ValueError):
        quantile_labels([0.0, 0.5])
    with pytest.raises(ValueError):
        quantile_labels([1.0])
    with pytest.raises(ValueError, match="duplicated"):
        quantile_labels([0.05, 0.0501])


def test_quantile_labels_three_digits():
    assert quantile_labels([0.001, 0.999]) == ["q001", "q999"]
    with pytest.raises(ValueError, match="three digit"):
        quantile_labels([0.9995])
    with pytest.raises(ValueError, match="three digit"):
        quantile_labels([0.0004])


def test_rf2_scenario(blocky_records):
    replicates = [make_replicate("rf2", 1, FixedModel([12.5, 9.0])),
                  make_replicate("rf2", 2, FixedModel([13.0, 8.5]))]
    dfsum = summarize_predictions(predict_bootstrap(blocky_records, replicates))
    assert dfsum.columns.tolist() == ["Percent_Sand", "Percent_Silt", "Percent_Clay", "Top_Type",
                                      "model_type", "n", "mean", "sd", "q050", "q500", "q950"]
    assert len(dfsum) == 2
    first = dfsum.iloc[0]
    assert first["Percent_Sand"] == 14.0
    assert first["n"] == 2
    assert first["mean"] == pytest.approx(12.75)
    assert first["sd"] == pytest.approx(0.3536, abs=1e-4)
    assert first["q050"] == pytest.approx(12.525)
    assert first["q500"] == pytest.approx(12.75)
    assert first["q950"] == pytest.approx(12.975)
    second = dfsum.iloc[1]
    assert second["mean"] == pytest.approx(8.75)
    assert second["q050"] == pytest.approx(8.525)


def test_singleton_groups():
    df = pd.DataFrame({"Percent_Sand": [10.0, 20.0, 30.0], "model_type": "rf1",
                       "sample_id": [1, 1, 1], "predicted": [1.5, 2.5, 3.5]})
    dfsum = summarize_predictions(df, quantiles=[0.1, 0.9])
    assert dfsum["n"].tolist() == [1, 1, 1]
    np.testing.assert_allclose(dfsum["mean"], df["predicted"])
    assert dfsum["sd"].isna().all()
    np.testing.assert_allclose(dfsum["q100"], df["predicted"])
    np.testing.assert_allclose(dfsum["q900"], df["predicted"])


def test_quantiles_linear_interpolation():
    rng = np.random.default_rng(7)
    values = rng.lognormal(1, 0.5, 37)
    df = pd.DataFrame({"model_type": "ann", "sample_id": range(37), "predicted": values})
    dfsum = summarize_predictions(df, quantiles=[0.05, 0.25, 0.5, 0.95])
    # type 7 quantile: h = (n - 1) * q, interpolate between order statistics
    x = np.sort(values)
    h = 36 * 0.05
    expected = x[int(h)] + (h - int(h)) * (x[int(h) + 1] - x[int(h)])
    assert dfsum["q050"].iloc[0] == pytest.approx(expected)
    assert dfsum["q500"].iloc[0] == pytest.approx(np.median(values))
    assert dfsum["sd"].iloc[0] == pytest.approx(np.std(values, ddof=1))


def test_grouping_order_insensitive():
    df = pd.DataFrame({
        "site": ["b", "a", "b", "a", "c", "b"],
        "model_type": ["rf1", "rf1", "rf1", "rf1", "ann", "rf1"],
        "sample_id": [1, 1, 2, 2, 1, 3],
        "predicted": [1.0, 10.0, 2.0, 20.0, 5.0, 3.0],
    })
    dfsum = summarize_predictions(df)
    # groups in order of first occurrence
    assert dfsum["site"].tolist() == ["b", "a", "c"]
    assert dfsum["n"].tolist() == [3, 2, 1]
    np.testing.assert_allclose(dfsum["mean"], [2.0, 15.0, 5.0])

    shuffled = df.sample(frac=1, random_state=3).reset_index(drop=True)
    dfsum2 = summarize_predictions(shuffled).sort_values("site").reset_index(drop=True)
    pd.testing.assert_frame_equal(dfsum.sort_values("site").reset_index(drop=True), dfsum2)


def test_missing_values_form_group():
    df = pd.DataFrame({
        "Percent_Rock_Fragment": [np.nan, 5.0, np.nan, 5.0],
        "model_type": "rf1",
        "sample_id": [1, 1, 2, 2],
        "predicted": [1.0, 4.0, 3.0, 6.0],
    })
    dfsum = summarize_predictions(df)
    assert len(dfsum) == 2
    assert np.isnan(dfsum["Percent_Rock_Fragment"].iloc[0])
    np.testing.assert_allclose(dfsum["mean"], [2.0, 5.0])


def test_empty_predictions():
    df = pd.DataFrame(columns=["Percent_Sand", "model_type", "sample_id", "predicted"])
    with pytest.raises(EmptyGroupError):
        summarize_predictions(df)


def test_summary_se():
    df = pd.DataFrame({"group": ["a", "a", "a", "b"], "kfs": [1.0, 2.0, 3.0, 4.0]})
    dfsum = summary_se(df, "kfs", groupvars="group")
    assert dfsum.columns.tolist() == ["group", "N", "kfs", "median", "sd", "se", "ci"]
    a = dfsum.iloc[0]
    assert a["N"] == 3
    assert a["kfs"] == pytest.approx(2.0)
    assert a["sd"] == pytest.approx(1.0)
    assert a["se"] == pytest.approx(1 / np.sqrt(3))
    assert a["ci"] == pytest.approx(1 / np.sqrt(3) * stats.t.ppf(0.975, 2))
    assert np.isnan(dfsum.iloc[1]["sd"])


def test_summary_se_missing_values():
    df = pd.DataFrame({"kfs": [1.0, np.nan, 3.0]})
    assert np.isnan(summary_se(df, "kfs")["kfs"].iloc[0])
    dfsum = summary_se(df, "kfs", na_rm=True)
    assert dfsum["N"].iloc[0] == 2
    assert dfsum["kfs"].iloc[0] == pytest.approx(2.0)


def test_evaluate_predictions():
    res = evaluate_predictions([1.0, 2.0, 3.0], [2.0, 3.0, 4.0])
    assert res["E"] == pytest.approx(1.0)
    assert res["RMSE"] == pytest.approx(1.0)
    assert res["EF"] == pytest.approx(-0.5)
    assert res["d"] == pytest.approx(1 - 3 / 11)
    with pytest.raises(ValueError):
        evaluate_predictions([1.0, 2.0], [1.0])


def test_evaluate_predictions_t_test():
    observed = np.array([1.0, 2.0, 3.0, 4.0])
    predicted = np.array([1.5, 1.8, 3.6, 4.4])
    res = evaluate_predictions(observed, predicted)
    assert res["p"] == pytest.approx(stats.ttest_1samp(predicted - observed, 0.).pvalue)
    assert res["EF"] < 1
