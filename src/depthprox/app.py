"""DearPyGUI entry point showing the depth preview and proximity labels.

Run with: `uv run task run`
"""

from __future__ import annotations

import sys
from typing import Optional


def main(argv: Optional[list[str]] = None) -> None:
    """Launch the viewer. Pass ``--synthetic`` to run without a camera."""
    # Import locally to avoid hard dependency at import time
    from pathlib import Path

    import dearpygui.dearpygui as dpg
    import numpy as np

    args = sys.argv[1:] if argv is None else argv

    # Initialize logging and fault handler
    logs_dir = Path("logs")
    try:
        logs_dir.mkdir(exist_ok=True)
    except Exception:
        pass
    try:
        import faulthandler
        import logging

        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            handlers=[
                logging.FileHandler(logs_dir / "app.log", encoding="utf-8"),
                logging.StreamHandler(),
            ],
        )
        fh = (logs_dir / "faulthandler.log").open("w")
        faulthandler.enable(fh)
    except Exception:
        pass

    from .capture import OpenNICapture, SyntheticCapture, SyntheticConfig
    from .display import to_rgba
    from .pipeline import ResultSlot
    from .session import CaptureSession, SetupResult

    if "--synthetic" in args:
        source = SyntheticCapture(SyntheticConfig(noise_m=0.005))
    else:
        source = OpenNICapture()

    slot = ResultSlot()
    session = CaptureSession(source, sink=slot.publish, realtime=True)
    setup = session.start()

    # UI setup
    dpg.create_context()
    dpg.create_viewport(title="Depth Proximity", width=560, height=820)

    tex_tag = "depth_tex"
    primary_tag = "primary_window"
    # Depth preview is shown left-mirrored (portrait for a landscape sensor)
    tex_w, tex_h = 360, 480
    with dpg.texture_registry():
        tex_buf = np.zeros((tex_h, tex_w, 4), dtype=np.float32)
        dpg.add_dynamic_texture(tex_w, tex_h, tex_buf.ravel(), tag=tex_tag)

    def on_close() -> None:
        session.stop()
        dpg.stop_dearpygui()

    with dpg.window(tag=primary_tag, label="Depth Proximity", width=540, height=780):
        avg_text = dpg.add_text("avg: -")
        min_text = dpg.add_text("min: -")
        max_text = dpg.add_text("max: -")
        status_text = dpg.add_text("Status: -")
        dpg.add_image(tex_tag)

    if setup is SetupResult.NOT_AUTHORIZED:
        with dpg.window(label="Depth Proximity", modal=True, no_close=False):
            dpg.add_text(
                "No permission to use the camera, please change privacy settings"
            )
    elif setup is SetupResult.CONFIGURATION_FAILED:
        dpg.set_value(status_text, "Status: configuration failed")

    dpg.setup_dearpygui()
    dpg.show_viewport()
    dpg.set_primary_window(primary_tag, True)
    dpg.set_exit_callback(on_close)

    last_seq = 0

    def ui_update_callback() -> None:
        nonlocal last_seq
        seq, result = slot.latest()
        ctx = session.ctx
        if setup is SetupResult.SUCCESS:
            state = "running" if session.running else "stopped"
            dpg.set_value(
                status_text,
                f"Status: {state} ok={ctx.accepted} rejected={ctx.rejected} "
                f"discarded={ctx.discarded} overruns={session.channel.overruns}",
            )
        if result is None or seq == last_seq:
            return
        last_seq = seq
        avg_label, min_label, max_label = result.display.labels()
        dpg.set_value(avg_text, avg_label)
        dpg.set_value(min_text, min_label)
        dpg.set_value(max_text, max_label)
        try:
            tex_buf[:] = to_rgba(result.image, (tex_w, tex_h))
            dpg.set_value(tex_tag, tex_buf.ravel())
        except Exception:
            pass

    # Schedule periodic UI updates using frame callbacks
    def schedule_ui_updates(interval_frames: int = 2) -> None:
        def _tick() -> None:
            ui_update_callback()
            dpg.set_frame_callback(dpg.get_frame_count() + interval_frames, _tick)

        dpg.set_frame_callback(dpg.get_frame_count() + interval_frames, _tick)

    schedule_ui_updates()

    dpg.start_dearpygui()
    dpg.destroy_context()


if __name__ == "__main__":  # pragma: no cover - manual entry
    main()
