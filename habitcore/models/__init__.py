"""Pydantic models for achievements, streaks and habits"""
