"""Doctors Domain - doctor profiles and recurring weekly availability"""
