"""Storage layer: settings, entities, backends"""
