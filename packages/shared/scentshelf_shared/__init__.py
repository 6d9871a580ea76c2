"""Schemas shared between the ScentShelf server and client code generation."""
