"""simulation — Resident behaviour and the top-level town loop.

Every resident follows a daily plan built once per simulated day.  The
schedule system turns the active plan entry into a navigation request,
and the traffic dispatcher and kinematics controller carry it out in
the same tick.

Submodules
----------
planner         Daily plan construction and overlap resolution
schedule        ResidentScheduleSystem: plan refresh, travel mode, car trips
population      Household and car seeding on residential lots
town_sim        TownSim: builds the subsystems and runs the tick
"""
