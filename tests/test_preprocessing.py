"""Tests for soil structure lookup, texture normalisation and feature encoding."""

import numpy as np
import pandas as pd
import pytest

from urbankfs.errors import InvalidInputError, MissingColumnError
from urbankfs.models import MODEL_TYPES, ModelConfig
from urbankfs.preprocessing import (encode_features, feature_names, map_structure_type,
    normalize_texture, prepare_data, soil_type_levels, soil_types)


def test_soil_type_levels():
    assert soil_type_levels() == ["blocky", "granular", "massive", "platy", "prismatic", "single grain"]


def test_soil_types_is_copy():
    lookup = soil_types()
    lookup["fine granular structure"] = "blocky"
    assert soil_types()["fine granular structure"] == "granular"


def test_map_structure_type():
    types = pd.Series(["medium subangular blocky", "coarse prismatic", "very fine granular structure",
                       "thin and medium plate-like structure", "Massive", None])
    mapped = map_structure_type(types)
    assert mapped.tolist()[:4] == ["blocky", "prismatic", "granular", "platy"]
    # lookup is case-sensitive, unknown descriptions are missing
    assert mapped[4:].isna().all()
    assert types[0] == "medium subangular blocky"


@pytest.mark.parametrize("model_type", list(MODEL_TYPES))
def test_feature_width(soil_records, model_type):
    config = ModelConfig.from_label(model_type)
    X = encode_features(soil_records, config)
    assert X.shape == (len(soil_records), 3 + config.use_rock + config.include_structure_type)


def test_feature_order(soil_records):
    config = ModelConfig.from_label("rf2r")
    assert feature_names(config) == ["Percent_Sand", "Percent_Silt", "Percent_Clay",
                                     "Percent_Rock_Fragment", "Top_Type"]
    X = encode_features(soil_records, config)
    np.testing.assert_array_equal(X[:, 0], soil_records["Percent_Sand"].values)
    np.testing.assert_array_equal(X[:, 3], soil_records["Percent_Rock_Fragment"].values)
    # blocky, granular, platy, single grain, massive
    np.testing.assert_array_equal(X[:, 4], [0, 1, 3, 5, 2])


def test_missing_columns_all_listed(soil_records):
    df = soil_records.drop(columns=["Percent_Rock_Fragment", "Top_Type"])
    with pytest.raises(MissingColumnError) as excinfo:
        encode_features(df, ModelConfig.from_label("rf2r"))
    assert excinfo.value.problems == ["Percent_Rock_Fragment", "Top_Type"]


def test_structure_type_case_sensitive(blocky_records):
    df = blocky_records.copy()
    df.loc[1, "Top_Type"] = "Blocky"
    with pytest.raises(InvalidInputError, match="Blocky"):
        encode_features(df, ModelConfig.from_label("rf2"))
    # structure type not required
    assert encode_features(df, ModelConfig.from_label("rf1")).shape == (2, 3)


def test_missing_structure_type_rejected(blocky_records):
    df = blocky_records.copy()
    df.loc[0, "Top_Type"] = np.nan
    with pytest.raises(InvalidInputError):
        encode_features(df, ModelConfig.from_label("rf2"))


def test_invalid_values_all_reported(soil_records):
    df = soil_records.copy()
    df.loc[0, "Percent_Sand"] = 30.0
    df.loc[1, "Percent_Rock_Fragment"] = -1.0
    df.loc[2, "Percent_Clay"] = np.nan
    with pytest.raises(InvalidInputError) as excinfo:
        encode_features(df, ModelConfig.from_label("rf1r"))
    problems = " ".join(excinfo.value.problems)
    assert "missing or non-numeric values in Percent_Clay" in problems
    assert "negative values in Percent_Rock_Fragment" in problems
    assert "sand + silt + clay" in problems


def test_texture_tolerance(blocky_records):
    df = blocky_records.copy()
    df["Percent_Sand"] = df["Percent_Sand"] + 0.5
    config = ModelConfig.from_label("rf1")
    assert encode_features(df, config).shape == (2, 3)
    with pytest.raises(InvalidInputError):
        encode_features(df, config, texture_tolerance=0.1)
    df["Percent_Sand"] = df["Percent_Sand"] + 10
    assert encode_features(df, config, texture_tolerance=None).shape == (2, 3)


def test_encode_does_not_modify_input(soil_records):
    before = soil_records.copy()
    encode_features(soil_records, ModelConfig.from_label("rf2r"))
    pd.testing.assert_frame_equal(soil_records, before)


def test_normalize_texture():
    df = pd.DataFrame({"Percent_Sand": [20.0, 10.0], "Percent_Silt": [20.0, 50.0], "Percent_Clay": [10.0, 20.0]})
    dfn = normalize_texture(df)
    np.testing.assert_allclose(dfn[["Percent_Sand", "Percent_Silt", "Percent_Clay"]].sum(axis=1), 100.0)
    np.testing.assert_allclose(dfn["Percent_Sand"], [40.0, 12.5])
    assert df["Percent_Sand"].tolist() == [20.0, 10.0]


def test_prepare_data(train_data):
    df = train_data.copy()
    df.loc[0, "Percent_Rock_Fragment"] = np.nan
    df.loc[1, "Unsaturated_K2cm_cmhr"] = 0.0
    sdata = prepare_data(df, use_rock=True)
    assert len(sdata) == len(df) - 2
    assert "Top_Type" not in sdata.columns
    np.testing.assert_allclose(sdata["log_Unsaturated_K2"], np.log(sdata["Unsaturated_K2cm_cmhr"]))
    # without rock fragments the first record is kept
    assert len(prepare_data(df, top_type=True)) == len(df) - 1
