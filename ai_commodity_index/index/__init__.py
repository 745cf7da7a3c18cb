"""
AI Commodity Composite Index (ACCI).

Modules
-------
components  Select recent predictions per commodity; derive the directional,
            confidence, accuracy-weight and momentum components.
composite   Weighted combination, sentiment, hard/soft split, snapshots.
fear_greed  Consumer-facing Fear/Greed transform of the latest index.
"""
