"""Marketplace search services"""
