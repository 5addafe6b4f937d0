"""
ai package – Intent inference and the agents that read it.

Modules:
    behavior_sampler   – Per-tick behavior samples, rolling windows, path heatmap
    intent_scorer      – Five intent channels from windowed samples
    reaction_tracker   – Threat telegraph → player reaction latency
    intent_tracker     – Per-session facade over sampler, scorer and reactions
    enemy_behavior     – Enemy patrol/chase/engage + attack state machines
    judgment           – End-of-session judgment rule table
    stats              – Session statistics and charts
    simulation_runner  – Headless scripted-player sessions
"""
