"""
Prediction-vs-actual accuracy scoring.

Modules
-------
matcher     Pair each matured prediction with the nearest actual price.
accuracy    MAPE, directional and threshold accuracy blended into one score.
ranker      Prediction-weighted league table across commodities, with trend.
"""
