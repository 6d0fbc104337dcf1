"""
Fitting of bootstrapped neural network and random forest models for soil hydraulic conductivity (Kfs).

Core functionality:
- reading training data with measured Kfs (Unsaturated_K2cm_cmhr), texture, rock fragments and structure type
- fitting all model types on the same bootstrap resamples of the training data
- evaluation of the bootstrap mean prediction against the training data (E, p, d, EF, RMSE)
- saving the replicate collection for use with kfs_predict

User settings, such as input/output paths and all other options, are set in the settings file
(Default filename: settings_kfs_bootstrap.yaml)
Alternatively, the settings file can be specified as a command line argument with:
'-s', or '--settings' followed by PATH-TO-FILE/FILENAME.yaml
(e.g. python -m urbankfs.kfs_bootstrap -s settings/settings_kfs_bootstrap.yaml).

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import os
import argparse
from types import SimpleNamespace

import pandas as pd
import yaml

from .bootstrap import fit_bootstrap, predict_bootstrap
from .kfs_predict import read_soil_data
from .models import ModelConfig, as_replicates
from .preprocessing import TARGET_COLUMN, feature_names
from .sigmastats import evaluate_predictions, summarize_predictions
from .utils import print2, save_replicates

# Settings yaml file
_fname_settings = 'settings_kfs_bootstrap.yaml'

fname_evaluation = 'kfs_bootstrap_evaluation.csv'


def evaluate_bootstrap(dftrain, fitted_models, n_jobs = 1):
    """
    Evaluates the bootstrap mean prediction of each model type against measured Kfs.

    Each model type is evaluated on the training records it can be fitted on,
    i.e. records with positive Kfs and no missing values in its predictors
    (e.g. structure descriptions missing from the lookup table are excluded for rf2 and rf2r).

    Input:
        dftrain: training dataframe with Unsaturated_K2cm_cmhr
        fitted_models: replicate collection dataframe

    Return:
        dataframe with one row per model type and columns model_type, n, E, p, d, EF, RMSE
    """
    df = dftrain.reset_index(drop = True)
    df['record_id'] = df.index
    replicates = as_replicates(fitted_models)
    rows = []
    for model_type in dict.fromkeys(r.model_type for r in replicates):
        cols = [TARGET_COLUMN] + feature_names(ModelConfig.from_label(model_type))
        dfsel = df[df[cols].notna().all(axis = 1) & (df[TARGET_COLUMN] > 0)]
        if len(dfsel) == 0:
            print(f'WARNING: no training records to evaluate {model_type}')
            continue
        result = predict_bootstrap(dfsel, [r for r in replicates if r.model_type == model_type],
            id_columns = ['record_id'], n_jobs = n_jobs, texture_tolerance = None)
        if len(result.predictions) == 0:
            continue
        dfsum = summarize_predictions(result)
        observed = df.loc[dfsum['record_id'].values, TARGET_COLUMN].values
        rows.append({'model_type': model_type, 'n': len(dfsum),
            **evaluate_predictions(observed, dfsum['mean'].values)})
    return pd.DataFrame(rows, columns = ['model_type', 'n', 'E', 'p', 'd', 'EF', 'RMSE'])


def main(fname_settings):
    """
    Main function for running the script.

    Input:
        fname_settings: path and filename to settings file

    Return:
        fitted_models: replicate collection dataframe
        dfeval: dataframe with evaluation statistics per model type
    """
    # Load settings from yaml file
    with open(fname_settings, 'r') as f:
        settings = yaml.load(f, Loader=yaml.FullLoader)
    # Parse settings dictionary as namespace (settings are available as
    # settings.variable_name rather than settings['variable_name'])
    settings = SimpleNamespace(**settings)

    # Verify output directory and make it if it does not exist
    os.makedirs(settings.outpath, exist_ok = True)

    # Intialise output info file:
    settings.fname_log = os.path.join(settings.outpath, 'loginfo.txt')
    print2('init', settings.fname_log)
    print2(f'--- Parameter Settings ---', settings.fname_log)
    print2(f'Training data: {os.path.join(settings.inpath, settings.infname)}', settings.fname_log)
    print2(f'Model types: {settings.model_types}', settings.fname_log)
    print2(f'Number of bootstrap samples: {settings.nsamples}', settings.fname_log)
    print2(f'--------------------------', settings.fname_log)

    print('Reading in data...')
    dftrain = read_soil_data(settings)
    dftrain = dftrain[dftrain[TARGET_COLUMN].notna()].reset_index(drop = True)
    print2(f'Number of training records: {len(dftrain)}', settings.fname_log)

    print('Fitting bootstrap replicates...')
    fitted_models = fit_bootstrap(dftrain, model_types = settings.model_types, nsamples = settings.nsamples,
        random_state = getattr(settings, 'random_state', None), progress = True)
    save_replicates(fitted_models, settings.fname_models)
    print2(f'{len(fitted_models)} fitted replicates saved to {settings.fname_models}', settings.fname_log)

    print('Evaluating bootstrap mean predictions on training data...')
    dfeval = evaluate_bootstrap(dftrain, fitted_models, n_jobs = getattr(settings, 'n_jobs', 1))
    dfeval.to_csv(os.path.join(settings.outpath, fname_evaluation), index = False)
    print2(dfeval.round(5).to_string(index = False), settings.fname_log)
    return fitted_models, dfeval


if __name__ == '__main__':
    # Parse command line arguments
    parser = argparse.ArgumentParser(description='Fitting bootstrapped models for soil hydraulic conductivity.')
    parser.add_argument('-s', '--settings', type=str, required=False,
                        help='Path and filename of settings file.',
                        default = _fname_settings)
    args = parser.parse_args()

    # Run main function
    main(args.settings)
