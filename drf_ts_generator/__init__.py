"""
drf-ts-generator: TypeScript interfaces and Yup/Zod schemas from Django models,
DRF serializers and Django forms.
"""

__version__ = "0.1.0"
