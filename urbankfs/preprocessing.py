"""
Preprocessing functions for urban soil texture and structure data.

Core functionality:
- static lookup of field descriptions of soil structure to canonical structure types
- normalisation of sand, silt and clay percentages to a sum of 100
- preparation of training data (selection of predictors, log-transform of Kfs)
- encoding of soil records into the feature matrix expected by a model configuration

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import numpy as np
import pandas as pd

from .errors import InvalidInputError, MissingColumnError

print_info = False

# Column names of input data
TEXTURE_COLUMNS = ['Percent_Sand', 'Percent_Silt', 'Percent_Clay']
ROCK_COLUMN = 'Percent_Rock_Fragment'
STRUCTURE_COLUMN = 'Top_Type'
SOIL_COLUMNS = TEXTURE_COLUMNS + [ROCK_COLUMN, STRUCTURE_COLUMN]
# Target variable (cm/hr) and its natural log
TARGET_COLUMN = 'Unsaturated_K2cm_cmhr'
LOG_TARGET_COLUMN = 'log_Unsaturated_K2'

# Field descriptions of soil structure and their canonical structure type
STRUCTURE_TYPES = {
    "fine granular structure": "granular",
    "single grain": "single grain",
    "medium granular structure": "granular",
    "thin and medium plate-like structure": "platy",
    "massive": "massive",
    "medium subangular blocky": "blocky",
    "medium and fine granular": "granular",
    "coarse granular blocky": "blocky",
    "fine subangular blocky": "blocky",
    "fine and medium granular structure": "granular",
    "medium platy structure": "platy",
    "fine and medium subangular blocky": "blocky",
    "fine and medium prismatic structure": "prismatic",
    "medium granular and strong": "granular",
    "medium angular blocky": "blocky",
    "fine angular structure": "blocky",
    "medium prismatic parting to moderate medium subangular blocky": "blocky",
    "medium prismatic structure parting to moderate medium subangular blocky": "blocky",
    "coarse prismatic": "prismatic",
    "medium prismatic": "prismatic",
    "angular blocky": "blocky",
    "very coarse prismatic structure": "prismatic",
    "very fine granular structure": "granular",
    "coarse subangular blocky": "blocky",
    "fine subangular and angular blocky": "blocky",
    "very fine and fine subangular blocky": "blocky",
    "medium and coarse subangular blocky": "blocky",
    "subangular blocky": "blocky",
    "fine granular structure and weak very fine subangular blocky": "granular",
}


def soil_types():
    """
    Returns the lookup table of soil structure field descriptions (keys)
    and their canonical structure type (values) as new dictionary.
    """
    return dict(STRUCTURE_TYPES)


def soil_type_levels():
    """
    Returns sorted list of canonical soil structure types.
    The position of a structure type in this list is its numeric feature code.
    """
    return sorted(set(STRUCTURE_TYPES.values()))


def map_structure_type(types):
    """
    Maps field descriptions of soil structure to canonical structure types.

    Input:
        types: sequence or pandas Series of field descriptions (e.g. column 'Type')

    Return:
        new pandas Series with canonical structure types, NaN for unknown descriptions
    """
    types = pd.Series(types)
    mapped = types.map(STRUCTURE_TYPES)
    if print_info:
        print(f'Structure types not found in lookup table: {types[mapped.isna()].unique().tolist()}')
    return mapped


def normalize_texture(data):
    """
    Rescales sand, silt and clay percentages so that they sum to exactly 100.

    Input:
        data: dataframe with columns Percent_Sand, Percent_Silt, Percent_Clay

    Return:
        new dataframe with rescaled texture columns
    """
    missing = [name for name in TEXTURE_COLUMNS if name not in data.columns]
    if len(missing) > 0:
        raise MissingColumnError('Missing the following columns', missing)
    df = data.copy()
    ratio = 100. / df[TEXTURE_COLUMNS].sum(axis = 1)
    for name in TEXTURE_COLUMNS:
        df[name] = df[name] * ratio
    return df


def feature_names(config):
    """
    Returns list of feature column names in the order expected by a model configuration.

    Input:
        config: ModelConfig
    """
    names = list(TEXTURE_COLUMNS)
    if config.use_rock:
        names.append(ROCK_COLUMN)
    if config.include_structure_type:
        names.append(STRUCTURE_COLUMN)
    return names


def prepare_data(data, use_rock = False, top_type = False):
    """
    Selects predictors and target for model training and adds log-transformed target.
    Rows with missing values or non-positive conductivity are removed.

    Input:
        data: dataframe with training data (texture columns and Unsaturated_K2cm_cmhr)
        use_rock: if True, includes Percent_Rock_Fragment
        top_type: if True, includes Top_Type

    Return:
        new dataframe with predictors, target and log_Unsaturated_K2
    """
    cols = [TARGET_COLUMN] + list(TEXTURE_COLUMNS)
    if use_rock:
        cols.append(ROCK_COLUMN)
    if top_type:
        cols.append(STRUCTURE_COLUMN)
    missing = [name for name in cols if name not in data.columns]
    if len(missing) > 0:
        raise MissingColumnError('Missing the following columns', missing)
    sdata = data[cols].dropna()
    sdata = sdata[sdata[TARGET_COLUMN] > 0].copy()
    if print_info:
        print(f'Training data: {len(sdata)} of {len(data)} records kept')
    sdata[LOG_TARGET_COLUMN] = np.log(sdata[TARGET_COLUMN].values)
    return sdata.reset_index(drop = True)


def encode_structure(types):
    """
    Encodes canonical structure types as integer codes (position in soil_type_levels()).
    Matching is exact and case-sensitive.

    Return:
        codes: integer array, -1 for types not in vocabulary
    """
    cat = pd.Categorical(np.asarray(types, dtype = object), categories = soil_type_levels())
    return np.asarray(cat.codes, dtype = int)


def encode_features(data, config, texture_tolerance = 1.0):
    """
    Converts soil records into the numeric feature matrix of a model configuration.

    Columns are Percent_Sand, Percent_Silt, Percent_Clay, followed by
    Percent_Rock_Fragment if config.use_rock and the structure type code if
    config.include_structure_type.
    The whole batch is rejected if any record is invalid, no records are dropped or imputed.

    Input:
        data: dataframe with soil records
        config: ModelConfig
        texture_tolerance: maximum allowed deviation of sand + silt + clay from 100 (percentage points),
            if None the texture sum is not checked

    Return:
        X: float array with shape (nrecords, nfeatures)
    """
    names = feature_names(config)
    missing = [name for name in names if name not in data.columns]
    if len(missing) > 0:
        raise MissingColumnError(f'Missing the following columns for model type {config.label}', missing)

    problems = []
    X = np.zeros((len(data), len(names)), dtype = float)
    for j, name in enumerate(names):
        if name == STRUCTURE_COLUMN:
            codes = encode_structure(data[name])
            if (codes < 0).any():
                bad = pd.unique(np.asarray(data[name], dtype = object)[codes < 0])
                problems.append(f'{name} values not in soil_type_levels(): {list(bad)}')
            X[:, j] = codes
            continue
        values = pd.to_numeric(data[name], errors = 'coerce').to_numpy(dtype = float)
        nbad = (~np.isfinite(values)).sum()
        if nbad > 0:
            problems.append(f'{nbad} missing or non-numeric values in {name}')
        if name == ROCK_COLUMN:
            nout = (values < 0).sum()
            if nout > 0:
                problems.append(f'{nout} negative values in {name}')
        else:
            nout = ((values < 0) | (values > 100)).sum()
            if nout > 0:
                problems.append(f'{nout} values of {name} outside [0, 100]')
        X[:, j] = values

    if texture_tolerance is not None:
        texture_sum = X[:, :3].sum(axis = 1)
        nsum = (np.abs(texture_sum - 100.) > texture_tolerance).sum()
        if nsum > 0:
            problems.append(f'{nsum} records with sand + silt + clay not within {texture_tolerance} of 100')

    if len(problems) > 0:
        raise InvalidInputError(f'Invalid input data for model type {config.label}', problems)
    return X
