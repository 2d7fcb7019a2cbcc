"""
Finite-distribution information theory for the entropic PFR argument.

Entropy, conditional entropy, mutual information and KL divergence over
explicit probability-mass tables, plus the Ruzsa-distance and tau-functional
layer used over finite abelian groups.
"""
