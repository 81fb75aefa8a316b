"""Start screen: pick a map size and which simulation layers to run."""

from __future__ import annotations

import dearpygui.dearpygui as dpg

from colony.settings import DEFAULT_MAP_SIZE, MAP_SIZES, StartConfig


class StartScreenUI:
    """Modal window collecting a ``StartConfig`` before the colony view opens."""

    def __init__(self, defaults: StartConfig | None = None) -> None:
        self.defaults = defaults or StartConfig()
        self.result: StartConfig | None = None
        size_names = list(MAP_SIZES)
        current = next(
            (name for name, size in MAP_SIZES.items() if size == self.defaults.map_size),
            next(name for name, size in MAP_SIZES.items() if size == DEFAULT_MAP_SIZE),
        )

        dpg.create_context()
        dpg.create_viewport(title="Lunar Colony - New Mission", width=420, height=320)
        with dpg.window(tag="_start", label="New Mission", width=420, height=320, no_move=True, no_resize=True):
            dpg.add_text("Establish a lunar colony.")
            dpg.add_radio_button(size_names, tag="map_size", default_value=current, horizontal=True)
            dpg.add_checkbox(label="AI directives and news", tag="ai_enabled", default_value=self.defaults.ai_enabled)
            dpg.add_checkbox(label="Life support (O2, CO2, food)", tag="life_support", default_value=self.defaults.life_support)
            dpg.add_checkbox(label="Rough terrain", tag="rough_terrain", default_value=self.defaults.rough_terrain)
            dpg.add_checkbox(label="Organic Auto-Gov growth", tag="organic_growth", default_value=self.defaults.organic_growth)
            dpg.add_checkbox(label="Start with Auto-Gov engaged", tag="auto_growth", default_value=self.defaults.auto_growth)
            dpg.add_button(label="Launch", callback=self._confirm)
        dpg.set_primary_window("_start", True)
        dpg.setup_dearpygui()
        dpg.show_viewport()

    def _confirm(self, sender, app_data):
        self.result = StartConfig(
            map_size=MAP_SIZES[dpg.get_value("map_size")],
            ai_enabled=dpg.get_value("ai_enabled"),
            life_support=dpg.get_value("life_support"),
            rough_terrain=dpg.get_value("rough_terrain"),
            organic_growth=dpg.get_value("organic_growth"),
            auto_growth=dpg.get_value("auto_growth"),
            seed=self.defaults.seed,
            terrain=self.defaults.terrain,
        )
        dpg.stop_dearpygui()

    def mainloop(self) -> StartConfig | None:
        while dpg.is_dearpygui_running():
            dpg.render_dearpygui_frame()
        dpg.destroy_context()
        return self.result


def choose_start_config(defaults: StartConfig | None = None) -> StartConfig | None:
    ui = StartScreenUI(defaults)
    return ui.mainloop()
