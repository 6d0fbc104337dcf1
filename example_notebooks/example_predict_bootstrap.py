"""
Example for bootstrapped prediction of soil hydraulic conductivity (Kfs).

This example generates synthetic training data of urban soils, fits bootstrap replicates
of a neural network and two random forest models, predicts Kfs for four soil records
and summarises the predictions with mean, standard deviation and quantiles.

Requirements:
- python>=3.9
- numpy>=1.22.0
- pandas>=1.3.5
- scikit_learn>=1.0.2
- scipy>=1.7.3
- tqdm>=4.62

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.
"""

import os
import numpy as np
import pandas as pd

from urbankfs.bootstrap import fit_bootstrap, predict_bootstrap
from urbankfs.models import pretty_model_types
from urbankfs.preprocessing import soil_type_levels
from urbankfs.sigmastats import summarize_predictions
from urbankfs.utils import save_replicates

outpath = 'results_example'
os.makedirs(outpath, exist_ok = True)

# Generate synthetic training data
rng = np.random.default_rng(42)
n = 200
sand = rng.uniform(10, 70, n)
clay = rng.uniform(5, 30, n)
dftrain = pd.DataFrame({
	'Percent_Sand': sand,
	'Percent_Silt': 100 - sand - clay,
	'Percent_Clay': clay,
	'Top_Type': rng.choice(soil_type_levels(), n),
	'Unsaturated_K2cm_cmhr': np.exp(0.03 * sand - 0.05 * clay + rng.normal(0, 0.3, n))})

# Fit 50 bootstrap replicates per model type
print('Fitting bootstrap replicates...')
fitted_models = fit_bootstrap(dftrain, model_types = ['ann', 'rf1', 'rf2'], nsamples = 50, random_state = 42, progress = True)
save_replicates(fitted_models, os.path.join(outpath, 'fitted_models.pkl'))

# Soil records for prediction
df = pd.DataFrame({
	'Percent_Sand': [14, 15, 18, 18],
	'Percent_Silt': [63, 15, 59, 60],
	'Percent_Clay': [23, 70, 23, 22],
	'Top_Type': ['blocky'] * 4})

print('Predicting Kfs...')
result = predict_bootstrap(df, fitted_models, n_jobs = 4, progress = True)

# Tidy summary
dfsum = summarize_predictions(result, quantiles = [0.05, 0.5, 0.95])
dfsum['model_name'] = dfsum['model_type'].map(pretty_model_types('value'))
print(dfsum)
dfsum.to_csv(os.path.join(outpath, 'kfs_predictions_summary.csv'), index = False)
