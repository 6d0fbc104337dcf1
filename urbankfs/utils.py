"""
Some useful functions

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import os
import pickle

import pandas as pd

from .models import replicates_to_frame


def print2(text, fname_out = os.path.join('loginfo.txt')):
	"""
	Prints text to standard output (typically terminal) and to file simultaneously
	Note text: Advise to use f-string for complex text

	INPUT:
	text: string (if 'init' new header will be written, and old content will be overwritten)
	fname_out: path + file name (Default: loginfo.txt)
	"""
	if text == 'init':
		# Initialise a new file (e.g., if program is restarted)
		with open(fname_out, 'w') as f:
			print('OUTPUT INFO', file = f)
			print('-----------', file = f)
	else:
		print(text)
		with open(fname_out, 'a') as f:
			print(text, file = f)


def save_replicates(fitted_models, fname):
	"""
	Saves replicate collection dataframe with fitted models as pickle file.

	INPUT:
	fitted_models: replicate collection dataframe (see bootstrap.fit_bootstrap)
	fname: path + filename
	"""
	with open(fname, 'wb') as f:
		pickle.dump(fitted_models, f)


def load_replicates(fname):
	"""
	Loads replicate collection dataframe from pickle file.

	Only load files from trusted sources, unpickling can execute arbitrary code.

	INPUT:
	fname: path + filename

	RETURN:
	replicate collection dataframe
	"""
	with open(fname, 'rb') as f:
		fitted_models = pickle.load(f)
	if not isinstance(fitted_models, pd.DataFrame):
		# list of FittedModelReplicate
		fitted_models = replicates_to_frame(fitted_models)
	return fitted_models
