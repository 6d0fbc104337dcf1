"""
Random Forest Model for soil hydraulic conductivity.

Random forests are trained directly on the target variable, no output scaling is required.

This package is part of the machine learning project for predicting hydraulic conductivity of urban soils.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""

import numpy as np
from sklearn.ensemble import RandomForestRegressor

print_info = False


def rf_train(X_train, y_train, ntree = 100, mtry = 2, random_state = None):
	"""
	Trains Random Forest regression model with training data

	INPUT
	X_train: input data matrix with shape (npoints,nfeatures)
	y_train: target variable with shape (npoints)
	ntree: number of trees
	mtry: number of features considered at each split
	random_state: seed of random number generator

	RETURN
	rf_model: trained sklearn RF model
	"""
	rf_reg = RandomForestRegressor(n_estimators = ntree, max_features = min(mtry, X_train.shape[1]),
		random_state = random_state)
	rf_reg.fit(X_train, y_train)
	if print_info:
		print(f"Random Forest trained with {ntree} trees on {X_train.shape[0]} samples")
	return rf_reg


def rf_predict(X_test, rf_model):
	"""
	Returns Prediction for Random Forest regression model (average over trees)

	INPUT
	X_test: input datapoints in shape (ndata,n_feature). The number of features has to be the same as for the training data
	rf_model: pre-trained RF model with predict method

	Return
	ypred: predicted y values
	"""
	return np.asarray(rf_model.predict(X_test), dtype = float).ravel()
