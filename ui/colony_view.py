import time

import dearpygui.dearpygui as dpg

from colony.buildings import BUILDINGS
from colony.models import Sentiment
from colony.technology import TECH_TREE
from terrain import BuildingType

TILE_SIZE = 36
PANEL_WIDTH = 300

SENTIMENT_COLORS = {
    Sentiment.POSITIVE: (74, 222, 128, 255),
    Sentiment.NEGATIVE: (248, 113, 113, 255),
    Sentiment.NEUTRAL: (203, 213, 225, 255),
}

REGOLITH = (110, 110, 118, 255)

# HistoryEntry fields charted in the side panel
TREND_PLOTS = (("money", "Credits"), ("population", "Colonists"), ("oxygen", "O2"))


def shade(color, height, levels=3):
    """Raise brightness with terrain height so plateaus read at a glance."""
    factor = 1.0 + 0.18 * height / max(1, levels - 1)
    r, g, b, a = color
    return (min(255, int(r * factor)), min(255, int(g * factor)), min(255, int(b * factor)), a)


class Camera:
    """Pan and zoom over the colony grid, in whole-tile coordinates."""

    def __init__(self, width, height, map_size, tile_size=TILE_SIZE):
        self.tile_size = tile_size
        span = map_size * tile_size
        self.offset_x = (width - span) // 2
        self.offset_y = (height - span) // 2
        self.zoom = 1.0

    def tile_rect(self, x, y):
        """Screen corners of tile (x, y)."""
        step = self.tile_size * self.zoom
        left = self.offset_x + x * step
        top = self.offset_y + y * step
        return (left, top), (left + step, top + step)

    def tile_at(self, pos):
        step = self.tile_size * self.zoom
        return int((pos[0] - self.offset_x) // step), int((pos[1] - self.offset_y) // step)

    def pan(self, dx, dy):
        self.offset_x += dx
        self.offset_y += dy

    def change_zoom(self, delta, pivot):
        before = self.zoom
        self.zoom = max(0.4, min(3.0, before + delta))
        ratio = self.zoom / before
        self.offset_x = pivot[0] - ratio * (pivot[0] - self.offset_x)
        self.offset_y = pivot[1] - ratio * (pivot[1] - self.offset_y)


class ColonyView:
    def __init__(self, colony, size=(1100, 720)):
        self.colony = colony
        self.size = size
        map_width = size[0] - PANEL_WIDTH
        self.camera = Camera(map_width, size[1], colony.config.map_size)
        self.hovered = None
        self._news_ids = ()

        dpg.create_context()
        dpg.create_viewport(title="Lunar Colony", width=size[0], height=size[1])
        with dpg.window(tag="_colony_window", width=map_width, height=size[1], no_move=True, no_resize=True, no_title_bar=True):
            self.canvas = dpg.add_drawlist(width=map_width, height=size[1], tag="_canvas")
        with dpg.window(tag="_panel", pos=(map_width, 0), width=PANEL_WIDTH, height=size[1], no_move=True, no_resize=True, no_title_bar=True):
            dpg.add_text("", tag="_stats")
            dpg.add_text("", tag="_atmosphere", show=colony.config.life_support)
            for name, label in TREND_PLOTS:
                dpg.add_simple_plot(label=label, tag=f"_trend_{name}", height=36, width=PANEL_WIDTH - 20)
            dpg.add_checkbox(label="Auto-Gov", tag="_auto_growth", default_value=colony.auto_growth, callback=self._toggle_auto_growth)
            dpg.add_separator()
            dpg.add_text("Construction")
            for building, config in BUILDINGS.items():
                dpg.add_button(
                    label=f"{config.name} (${config.cost})",
                    tag=f"_tool_{building.value}",
                    callback=self._select_tool,
                    user_data=building,
                    width=-1,
                )
            dpg.add_separator()
            dpg.add_text("Research")
            for node in TECH_TREE[1:]:
                dpg.add_button(
                    label=f"{node.name} ({node.cost} sci)",
                    tag=f"_tech_{node.id}",
                    callback=self._research,
                    user_data=node.id,
                    width=-1,
                )
            dpg.add_separator()
            dpg.add_text("", tag="_goal", wrap=PANEL_WIDTH - 20)
            dpg.add_button(label="Claim Reward", tag="_claim", callback=self._claim, show=False)
            dpg.add_separator()
            with dpg.child_window(tag="_news", height=-1):
                pass
        dpg.set_primary_window("_colony_window", True)
        with dpg.handler_registry():
            dpg.add_mouse_click_handler(callback=self._on_click)
            dpg.add_mouse_move_handler(callback=self._on_move)
            dpg.add_mouse_drag_handler(button=dpg.mvMouseButton_Middle, callback=self._on_drag)
            dpg.add_mouse_wheel_handler(callback=self._on_scroll)
            dpg.add_key_press_handler(callback=self._on_key)
        dpg.setup_dearpygui()
        dpg.show_viewport()

    # event callbacks
    def _on_click(self, sender, app_data):
        if app_data != dpg.mvMouseButton_Left or not dpg.is_item_hovered("_colony_window"):
            return
        coords = self.tile_at_pos(dpg.get_mouse_pos())
        if coords:
            self.colony.handle_tile_click(*coords)

    def _on_move(self, sender, app_data):
        self.hovered = self.tile_at_pos(dpg.get_mouse_pos())

    def _on_drag(self, sender, app_data):
        self.camera.pan(app_data[1], app_data[2])

    def _on_scroll(self, sender, app_data):
        self.camera.change_zoom(app_data * 0.1, dpg.get_mouse_pos())

    def _on_key(self, sender, app_data):
        if app_data == dpg.mvKey_Escape:
            dpg.stop_dearpygui()
        elif app_data == dpg.mvKey_A:
            dpg.set_value("_auto_growth", self.colony.toggle_auto_growth())
        elif app_data == dpg.mvKey_X:
            self.colony.select_tool(BuildingType.NONE)

    def _select_tool(self, sender, app_data, user_data):
        self.colony.select_tool(user_data)

    def _research(self, sender, app_data, user_data):
        self.colony.research(user_data)

    def _claim(self, sender, app_data):
        self.colony.claim_reward()

    def _toggle_auto_growth(self, sender, app_data):
        if bool(app_data) != self.colony.auto_growth:
            self.colony.toggle_auto_growth()

    def tile_at_pos(self, pos):
        x, y = self.camera.tile_at(pos)
        if self.colony.grid.in_bounds(x, y):
            return x, y
        return None

    # drawing
    def draw_tile(self, x, y, color, thickness=1, border=(20, 20, 24, 255), fill=True):
        top_left, bottom_right = self.camera.tile_rect(x, y)
        dpg.draw_rectangle(top_left, bottom_right, color=border, fill=color if fill else (0, 0, 0, 0), thickness=thickness, parent=self.canvas)

    def draw_map(self):
        dpg.delete_item(self.canvas, children_only=True)
        levels = self.colony.config.terrain.levels
        for tile in self.colony.grid:
            if tile.is_empty:
                color = REGOLITH
            else:
                color = BUILDINGS[tile.building].color
            self.draw_tile(tile.x, tile.y, shade(color, tile.height, levels))
        if self.hovered:
            config = BUILDINGS[self.colony.selected_tool]
            hx, hy = self.hovered
            for j in range(config.height):
                for i in range(config.width):
                    if self.colony.grid.in_bounds(hx + i, hy + j):
                        self.draw_tile(hx + i, hy + j, None, thickness=2, border=(250, 204, 21, 255), fill=False)

    def draw_panel(self):
        colony = self.colony
        stats = colony.stats
        dpg.set_value(
            "_stats",
            f"Sol {stats.day}\n"
            f"Credits: {stats.money}\n"
            f"Colonists: {stats.population}\n"
            f"Science: {stats.science}\n"
            f"Power: {stats.power_supply}/{stats.power_demand}",
        )
        if colony.config.life_support:
            dpg.set_value(
                "_atmosphere",
                f"O2: {stats.oxygen:.1f}%  CO2: {stats.co2:.0f}ppm  Food: {stats.food:.0f}",
            )
        for name, label in TREND_PLOTS:
            series = colony.history_series(name)
            if series:
                dpg.configure_item(f"_trend_{name}", overlay=f"{label} {series[-1]:.0f}")
                dpg.set_value(f"_trend_{name}", series)
        for building in BUILDINGS:
            dpg.configure_item(f"_tool_{building.value}", enabled=building in colony.unlocked)
        for node in TECH_TREE[1:]:
            dpg.configure_item(f"_tech_{node.id}", show=node.id not in colony.unlocked_techs)

        goal = colony.goal
        if goal is None:
            dpg.set_value("_goal", "Awaiting directive..." if colony.config.ai_enabled else "")
        else:
            state = "COMPLETE" if goal.completed else f"Target: {goal.target_value}"
            dpg.set_value("_goal", f"{goal.description}\n{state} | Reward: {goal.reward}")
        dpg.configure_item("_claim", show=bool(goal and goal.completed))

        items = colony.news.to_list()
        ids = tuple(item.id for item in items)
        if ids != self._news_ids:
            self._news_ids = ids
            dpg.delete_item("_news", children_only=True)
            for item in reversed(items):
                dpg.add_text(item.text, color=SENTIMENT_COLORS[item.type], wrap=PANEL_WIDTH - 30, parent="_news")

    def run(self):
        self.colony.start()
        try:
            while dpg.is_dearpygui_running():
                self.colony.update(time.monotonic())
                self.draw_map()
                self.draw_panel()
                dpg.render_dearpygui_frame()
        finally:
            self.colony.stop()
            dpg.destroy_context()
        return self.colony.stats
