# This directory contains Python scripts for predicting unsaturated hydraulic conductivity of urban soils.

__title__ = "urbankfs: Bootstrapped machine learning models for predicting hydraulic conductivity of urban soils"
__description__ = """
This directory contains Python scripts for fitting, applying and summarising bootstrapped
artificial neural network and random forest models that predict the unsaturated hydraulic
conductivity (Kfs) of urban soils from soil texture, rock fragment content and soil structure type.
Predictions from all bootstrap replicates are combined into summary statistics
(mean, standard deviation and quantiles) to quantify prediction uncertainty.
"""
__uri__ = "https://github.com/ashiklom/urbankfs"
__doc__ = __description__ + " <" + __uri__ + ">"
__version__ = "0.3.0"

__author__ = "Alexey Shiklomanov"
__license__ = "MIT License"

