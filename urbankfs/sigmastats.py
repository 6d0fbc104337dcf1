# Summary statistics of bootstrapped predictions and evaluation statistics of model predictions

import numpy as np
import pandas as pd
from scipy import stats

from .errors import EmptyGroupError, MissingColumnError

DEFAULT_QUANTILES = (0.05, 0.5, 0.95)


def quantile_labels(quantiles):
	"""
	Column names for quantiles as three digit permille code, e.g. 0.05 -> 'q050'.
	Fractions that round to 0 or 1000 permille (q < 0.0005 or q >= 0.9995) have no such code.

	INPUT
	-----
	quantiles: sequence of quantile fractions, each in (0, 1)

	Return:
	-------
	list of column names
	"""
	labels = []
	for q in quantiles:
		if not (0 < q < 1):
			raise ValueError(f'Quantile {q} not in (0, 1)')
		label = f'q{q * 1000:03.0f}'
		if label == 'q000' or len(label) != 4:
			raise ValueError(f'Quantile {q} has no three digit permille code')
		labels.append(label)
	if len(set(labels)) != len(labels):
		raise ValueError(f'Quantiles {list(quantiles)} result in duplicated column names {labels}')
	return labels


def summarize_predictions(predictions, quantiles = DEFAULT_QUANTILES):
	"""
	Summary of bootstrapped predictions.

	Predictions are grouped by all columns except sample_id and predicted,
	i.e. one group per input record and model type. Groups are identified by value
	(missing values included) and returned in order of their first occurrence.
	For each group the number of replicates, mean, sample standard deviation
	(NaN for a single replicate) and quantiles (linear interpolation between order statistics)
	of the predicted values are calculated.

	INPUT
	-----
	predictions: BootstrapPrediction or dataframe with columns sample_id and predicted
	quantiles: quantile fractions, default (0.05, 0.5, 0.95)

	Return:
	-------
	dataframe with grouping columns, n, mean, sd and one column per quantile (e.g. q050)
	"""
	df = getattr(predictions, 'predictions', predictions)
	missing = [name for name in ['sample_id', 'predicted'] if name not in df.columns]
	if len(missing) > 0:
		raise MissingColumnError('Missing the following columns', missing)
	if len(df) == 0:
		raise EmptyGroupError('No predictions to summarize')
	qlabels = quantile_labels(quantiles)

	groupvars = [name for name in df.columns if name not in ['sample_id', 'predicted']]
	values = pd.to_numeric(df['predicted']).astype(float)
	if len(groupvars) > 0:
		grouped = values.groupby([df[name] for name in groupvars], sort = False, dropna = False)
	else:
		grouped = values.groupby(np.zeros(len(df), dtype = int))
	dfsum = grouped.agg(n = 'size', mean = 'mean', sd = 'std')
	for qlabel, q in zip(qlabels, quantiles):
		dfsum[qlabel] = grouped.quantile(q).to_numpy()
	return dfsum.reset_index(drop = len(groupvars) == 0)


def summary_se(data, measurevar, groupvars = None, conf_interval = 0.95, na_rm = False):
	"""
	Summary of a variable per group with standard error and confidence interval of the mean.

	INPUT
	-----
	data: dataframe
	measurevar: name of column to summarize
	groupvars: list of grouping columns
	conf_interval: confidence level for the interval of the mean (t-distribution with N-1 degrees of freedom)
	na_rm: if True, missing values are ignored

	Return:
	-------
	dataframe with groupvars, N, measurevar (mean), median, sd, se and ci
	"""
	if isinstance(groupvars, str):
		groupvars = [groupvars]

	def _stats(x):
		if na_rm:
			x = x.dropna()
		return {'N': len(x), measurevar: x.mean(skipna = False), 'median': x.median(skipna = False),
			'sd': x.std(skipna = False)}

	if groupvars:
		rows = []
		for key, x in data.groupby(groupvars, sort = True)[measurevar]:
			key = key if isinstance(key, tuple) else (key,)
			rows.append({**dict(zip(groupvars, key)), **_stats(x)})
		dfsum = pd.DataFrame(rows, columns = groupvars + ['N', measurevar, 'median', 'sd'])
	else:
		dfsum = pd.DataFrame([_stats(data[measurevar])])
	dfsum['se'] = dfsum['sd'] / np.sqrt(dfsum['N'])
	# t-statistic for confidence interval, e.g. 0.975 for conf_interval 0.95
	ci_mult = stats.t.ppf(conf_interval / 2 + .5, dfsum['N'] - 1)
	dfsum['ci'] = dfsum['se'] * ci_mult
	return dfsum


def evaluate_predictions(observed, predicted):
	"""
	Evaluation statistics of predicted versus measured values.

	E:    mean error of predicted - observed
	p:    p-value of one-sample t-test of errors against zero
	d:    index of agreement (Willmott)
	EF:   modelling efficiency (Nash-Sutcliffe)
	RMSE: root mean square error

	INPUT
	-----
	observed: measured values
	predicted: predicted values

	Return:
	-------
	dictionary with E, p, d, EF, RMSE
	"""
	observed = np.asarray(observed, dtype = float)
	predicted = np.asarray(predicted, dtype = float)
	if observed.shape != predicted.shape:
		raise ValueError(f'Shapes of observed {observed.shape} and predicted {predicted.shape} differ')
	residual = predicted - observed
	obs_mean = np.mean(observed)
	sse = np.sum(residual**2)
	return {
		'E': np.mean(residual),
		'p': stats.ttest_1samp(residual, 0.).pvalue,
		'd': 1 - sse / np.sum((np.abs(predicted - obs_mean) + np.abs(observed - obs_mean))**2),
		'EF': 1 - sse / np.sum((observed - obs_mean)**2),
		'RMSE': np.sqrt(sse / len(residual)),
	}
