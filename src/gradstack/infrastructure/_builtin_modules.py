"""
Import every built-in module class so `@register_module` has run for each of
them before a configuration tree is rebuilt.
"""

from ._activations import Logistic, RectifiedLinear, Scale, Softmax, Softplus, Tanh
from ._autoencoder import Autoencoder
from ._linear import Linear
from .convolution._convolution_module import Convolution
from .layers._dropout import Dropout
from .layers._noise import GaussianNoise
from .layers._normaliser import Normaliser
from .models._split import Split
from .models._stack import Stack
from .pooling._pooling_module import MaxPooling

__all__ = [
    "Autoencoder",
    "Convolution",
    "Dropout",
    "GaussianNoise",
    "Linear",
    "Logistic",
    "MaxPooling",
    "Normaliser",
    "RectifiedLinear",
    "Scale",
    "Softmax",
    "Softplus",
    "Split",
    "Stack",
    "Tanh",
]
