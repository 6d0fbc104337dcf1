"""
Error kinds raised while encoding, predicting and summarising bootstrapped Kfs models.

Errors that can collect several problems at once keep them in the attribute `problems`
and list all of them in the error message.

Copyright 2023 Alexey Shiklomanov

This open-source software is released under the MIT License.
"""


class UrbanKfsError(Exception):
	"""Base class for all errors of this package."""

	def __init__(self, message, problems = None):
		self.problems = list(problems) if problems is not None else []
		if self.problems:
			message = message + ': ' + '; '.join(str(p) for p in self.problems)
		super().__init__(message)


class InvalidInputError(UrbanKfsError, ValueError):
	"""Malformed input values, e.g. a structure type not in the canonical vocabulary."""


class MissingColumnError(UrbanKfsError, KeyError):
	"""A feature column required by a model configuration is absent."""

	def __str__(self):
		# KeyError would otherwise quote the message
		return Exception.__str__(self)


class DegenerateScaleError(UrbanKfsError, ValueError):
	"""Zero-width or malformed min-max normalisation range."""


class PredictionError(UrbanKfsError):
	"""Invocation of a fitted model handle failed."""


class ValidationError(UrbanKfsError):
	"""Pre-flight check of the input data or replicate collection failed."""


class EmptyGroupError(UrbanKfsError):
	"""Summary requested for an empty prediction table."""


class PartialFailure(UrbanKfsError):
	"""
	Failure of a single bootstrap replicate.

	Collected in the failure report of a bootstrap prediction rather than raised,
	so the remaining replicates are still summarised.
	"""

	def __init__(self, sample_id, model_type, cause):
		self.sample_id = sample_id
		self.model_type = model_type
		self.cause = cause
		super().__init__(f'Replicate {model_type} sample {sample_id} failed with {type(cause).__name__}: {cause}')
