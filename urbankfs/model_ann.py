"""
Artificial Neural Network (ANN) regression with min-max scaled target.

The network is trained on the target variable scaled to the range [0, 1],
predictions are converted back to physical units with the stored scale factors.

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import numpy as np
from sklearn.neural_network import MLPRegressor

from .errors import DegenerateScaleError

print_info = False


def check_scale_factors(scale_factors):
	"""
	Validates scale factors (lo, hi) and returns them as floats.
	"""
	if scale_factors is None or len(scale_factors) != 2:
		raise ValueError(f'scale_factors must be a pair (lo, hi), got {scale_factors}')
	lo, hi = float(scale_factors[0]), float(scale_factors[1])
	if not (np.isfinite(lo) & np.isfinite(hi)):
		raise DegenerateScaleError(f'Non-finite scale factors ({lo}, {hi})')
	if hi < lo:
		raise DegenerateScaleError(f'Scale factors not ordered, hi = {hi} < lo = {lo}')
	return lo, hi


def scale_range(x, scale_factors = None):
	"""
	Min-max scaling of data to the range [0, 1]:
	xs = (x - lo) / (hi - lo)

	If hi == lo, the scale is set to 1 (xs = x - lo).

	INPUT
	-----
	x: data array
	scale_factors: (lo, hi), if None the range of x is used

	Return:
	-------
	xs: scaled x
	scale_factors: (lo, hi)
	"""
	x = np.asarray(x, dtype = float)
	if scale_factors is None:
		scale_factors = (np.min(x), np.max(x))
	lo, hi = check_scale_factors(scale_factors)
	scale = hi - lo
	if scale == 0:
		scale = 1.
	return (x - lo) / scale, (lo, hi)


def unscale_range(x, scale_factors, strict = False):
	"""
	Inverse of min-max scaling:
	x = xs * (hi - lo) + lo

	Values outside [0, 1] are not clipped.
	For a zero-width range (hi == lo) the forward scaling used a scale of 1,
	so the inverse is xs + lo. If strict is True, a zero-width range raises
	DegenerateScaleError instead.

	INPUT
	-----
	x: scaled data (scalar or array)
	scale_factors: (lo, hi) used for scaling
	strict: if True, raise DegenerateScaleError for hi == lo

	Return:
	-------
	x in original units
	"""
	lo, hi = check_scale_factors(scale_factors)
	x = np.asarray(x, dtype = float)
	if hi == lo:
		if strict:
			raise DegenerateScaleError(f'Zero-width scale factors ({lo}, {hi})')
		return x + lo
	return x * (hi - lo) + lo


def ann_train(X_train, y_train, hidden = (5, 3), max_iter = 10000, random_state = None):
	"""
	Trains neural network regression model on min-max scaled target

	INPUT
	X_train: input data matrix with shape (npoints,nfeatures)
	y_train: target variable with shape (npoints)
	hidden: number of neurons per hidden layer
	max_iter: maximum number of solver iterations
	random_state: seed for weight initialisation

	RETURN
	ann_model: trained sklearn MLPRegressor
	scale_factors: (lo, hi) of y_train
	"""
	ys, scale_factors = scale_range(y_train)
	# logistic activation with linear output as for classic backpropagation networks
	ann_model = MLPRegressor(hidden_layer_sizes = hidden, activation = 'logistic', solver = 'lbfgs',
		max_iter = max_iter, random_state = random_state)
	ann_model.fit(X_train, ys)
	if print_info:
		print(f'ANN trained with {ann_model.n_iter_} iterations, loss: {np.round(ann_model.loss_, 5)}')
	return ann_model, scale_factors


def ann_predict(X_test, ann_model, scale_factors):
	"""
	Returns prediction of neural network in units of the training target

	INPUT
	X_test: input data matrix with shape (npoints,nfeatures)
	ann_model: trained network with predict method
	scale_factors: (lo, hi) of training target

	RETURN
	ypred: predicted y values
	"""
	ys = np.asarray(ann_model.predict(X_test), dtype = float).ravel()
	return unscale_range(ys, scale_factors)
