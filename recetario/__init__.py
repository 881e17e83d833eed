"""Recetario service: recipe sharing API on top of Supabase."""

__version__ = "1.0.0"
