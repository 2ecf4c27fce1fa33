# marker_annote/__init__.py
'''
marker_annote/
    __init__.py
    __main__.py

    app.py                 # QApplication + logging + player API readiness
    main_window.py         # QMainWindow: video list page + detail page wiring
    config.py              # endpoints, data file, intervals (.env overridable)

    domain.py              # dataclasses: Video, Marker, MarkerType, MarkerGroup; seed data
    timeutils.py           # m:ss formatting, pointer -> seconds, lane stacking
    tempo.py               # tap tempo BPM estimation
    marker_types.py        # marker type registry (colors) + preference stores
    persistence.py         # HTTP client for the video store, atomic JSON, background writes
    store.py               # AnnotationStore: videos/markers, grouping, load/persist
    selection.py           # RangeSelector: drag/click gestures -> seek or new marker
    playback.py            # PlaybackSync: players, play/pause arbitration, polling
    session.py             # the active UI session (selected video, selector, tempo)
    server.py              # Flask file store: GET/PUT /api/videos

    widgets/
      marker_timeline.py   # marker blocks + playhead + selection overlay, gesture input
      marker_types_panel.py# type list with color swatches, toggle/add
      marker_groups_tree.py# markers grouped by type, activation jumps
      player_view.py       # QMediaPlayer adapter exposing PlayerOps

    dialogs/
      marker_label.py      # label prompt for new markers
'''

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
