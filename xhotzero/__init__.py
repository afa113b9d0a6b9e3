"""
Batched Monte Carlo Tree Search over a learned latent model with x-hot composite actions.
"""
