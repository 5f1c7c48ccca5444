"""
Modeling layer for training and classification.

Instance sets, their caches, the classifier engine, training, persistence
and classification of new inputs with trained models.
"""
