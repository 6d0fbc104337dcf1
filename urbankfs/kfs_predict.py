"""
Prediction of unsaturated hydraulic conductivity (Kfs) of urban soils with bootstrapped models.

Core functionality:
- reading soil records (sand, silt, clay, rock fragments, structure type) from csv
- optional mapping of soil structure descriptions to canonical structure types
- prediction with every fitted bootstrap replicate of all model types
- summary statistics of predictions per record and model type (mean, standard deviation, quantiles)
- report of replicates that failed

User settings, such as input/output paths and all other options, are set in the settings file
(Default filename: settings_kfs_predict.yaml)
Alternatively, the settings file can be specified as a command line argument with:
'-s', or '--settings' followed by PATH-TO-FILE/FILENAME.yaml
(e.g. python -m urbankfs.kfs_predict -s settings/settings_kfs_predict.yaml).

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import os
import argparse
from types import SimpleNamespace

import pandas as pd
import yaml

from .bootstrap import predict_bootstrap
from .preprocessing import STRUCTURE_COLUMN, map_structure_type, normalize_texture
from .sigmastats import DEFAULT_QUANTILES, summarize_predictions
from .utils import load_replicates, print2

# Settings yaml file
_fname_settings = 'settings_kfs_predict.yaml'

# Output file names
fname_predictions = 'kfs_predictions_bootstrap.csv'
fname_summary = 'kfs_predictions_summary.csv'
fname_failures = 'kfs_predictions_failures.csv'


def read_soil_data(settings):
    """
    Reads soil records from csv and applies optional preprocessing.

    Parameters
    ----------
        settings : settings namespace

    Return:
    -------
        dataframe with soil records
    """
    df = pd.read_csv(os.path.join(settings.inpath, settings.infname))
    if getattr(settings, 'colname_structure', None) is not None:
        # Map field descriptions of soil structure to canonical types
        df[STRUCTURE_COLUMN] = map_structure_type(df[settings.colname_structure]).values
        nmissing = df[STRUCTURE_COLUMN].isna().sum()
        if nmissing > 0:
            print2(f'WARNING: {nmissing} structure descriptions in {settings.colname_structure} not found in lookup table',
                settings.fname_log)
    if getattr(settings, 'normalize', False):
        df = normalize_texture(df)
    return df


def main(fname_settings):
    """
    Main function for running the script.

    Input:
        fname_settings: path and filename to settings file

    Return:
        dfsum: dataframe with prediction summary
        result: BootstrapPrediction with all predictions and failures
    """
    # Load settings from yaml file
    with open(fname_settings, 'r') as f:
        settings = yaml.load(f, Loader=yaml.FullLoader)
    # Parse settings dictionary as namespace (settings are available as
    # settings.variable_name rather than settings['variable_name'])
    settings = SimpleNamespace(**settings)
    quantiles = getattr(settings, 'quantiles', None) or DEFAULT_QUANTILES

    # Verify output directory and make it if it does not exist
    os.makedirs(settings.outpath, exist_ok = True)

    # Intialise output info file:
    settings.fname_log = os.path.join(settings.outpath, 'loginfo.txt')
    print2('init', settings.fname_log)
    print2(f'--- Parameter Settings ---', settings.fname_log)
    print2(f'Input data: {os.path.join(settings.inpath, settings.infname)}', settings.fname_log)
    print2(f'Fitted models: {settings.fname_models}', settings.fname_log)
    print2(f'Quantiles: {list(quantiles)}', settings.fname_log)
    print2(f'--------------------------', settings.fname_log)

    print('Reading in data...')
    df = read_soil_data(settings)
    fitted_models = load_replicates(settings.fname_models)
    print2(f'Number of records: {len(df)}', settings.fname_log)
    print2(f'Number of fitted replicates: {len(fitted_models)}', settings.fname_log)

    print('Predicting Kfs for all bootstrap replicates...')
    result = predict_bootstrap(df, fitted_models,
        id_columns = getattr(settings, 'id_columns', None),
        n_jobs = getattr(settings, 'n_jobs', 1),
        progress = True,
        texture_tolerance = getattr(settings, 'texture_tolerance', 1.0))
    result.predictions.to_csv(os.path.join(settings.outpath, fname_predictions), index = False)

    if len(result.failures) > 0:
        print2(f'WARNING: {len(result.failures)} replicates failed, see {fname_failures}', settings.fname_log)
        result.failure_report().to_csv(os.path.join(settings.outpath, fname_failures), index = False)

    print('Calculating summary statistics...')
    dfsum = summarize_predictions(result, quantiles = quantiles)
    dfsum.to_csv(os.path.join(settings.outpath, fname_summary), index = False)
    print2(f'Summary of {len(dfsum)} records and model types saved to {fname_summary}', settings.fname_log)
    return dfsum, result


if __name__ == '__main__':
    # Parse command line arguments
    parser = argparse.ArgumentParser(description='Prediction of soil hydraulic conductivity with bootstrapped models.')
    parser.add_argument('-s', '--settings', type=str, required=False,
                        help='Path and filename of settings file.',
                        default = _fname_settings)
    args = parser.parse_args()

    # Run main function
    main(args.settings)
