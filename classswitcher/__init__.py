"""
ClassSwitcher: weekly class timetable with a planning mode for trying out
alternative tutorial/seminar groups before committing to them.
"""
