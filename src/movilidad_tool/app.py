"""App Kivy con gráficos de movilidad por rango y sincronizacion en vivo."""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from movilidad_tool.aggregator import StatisticsAggregator
from movilidad_tool.context import HealthContext
from movilidad_tool.excel_writer import ExcelLayout, write_chart_xlsx
from movilidad_tool.health_store import LocalHealthStore
from movilidad_tool.metrics import MOBILITY_METRICS
from movilidad_tool.model import AnchoredBatch, ChartModel, TimeRange
from movilidad_tool.presenter import MobilityChartController
from movilidad_tool.sources.google_fit import GoogleFitPaths, GoogleFitSource
from movilidad_tool.storage import AppConfig, SQLiteStore
from movilidad_tool.sync import HttpSync, LoggingSync, NetworkSync
from movilidad_tool.watcher import LiveUpdateWatcher

logger = logging.getLogger(__name__)

RANGE_BUTTONS: list[tuple[str, TimeRange]] = [
    ("Día", TimeRange.DAY),
    ("Semana", TimeRange.WEEK),
    ("Mes", TimeRange.MONTH),
]


def chart_points(
    values: tuple[float, ...], width: float, height: float
) -> list[float]:
    """Flatten values into ``[x0, y0, x1, y1, ...]`` scaled to the box."""
    if not values:
        return []
    top = max(values)
    bottom = min(0.0, min(values))
    span = (top - bottom) or 1.0
    step = width / (len(values) - 1) if len(values) > 1 else 0.0
    points: list[float] = []
    for idx, value in enumerate(values):
        points.append(idx * step)
        points.append((value - bottom) / span * height)
    return points


def run_app() -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.clock import Clock
    from kivy.core.window import Window
    from kivy.graphics import Color, Line
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.button import Button
    from kivy.uix.filechooser import FileChooserListView
    from kivy.uix.label import Label
    from kivy.uix.popup import Popup
    from kivy.uix.textinput import TextInput
    from kivy.uix.widget import Widget

    def ui_dispatch(fn: Callable[[], None]) -> None:
        Clock.schedule_once(lambda _dt: fn(), 0)

    def button_row(items: list[tuple[str, Callable[..., None]]]) -> BoxLayout:
        row = BoxLayout(
            orientation="horizontal", spacing=8, size_hint_y=None, height=40
        )
        for text, on_press in items:
            btn = Button(text=text)
            btn.bind(on_press=on_press)
            row.add_widget(btn)
        return row

    class GraphWidget(Widget):
        """Line plot of the first data series of a chart model."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.values: tuple[float, ...] = ()
            self.bind(pos=self._redraw, size=self._redraw)

        def set_values(self, values: tuple[float, ...]) -> None:
            self.values = values
            self._redraw()

        def _redraw(self, *_args: object) -> None:
            self.canvas.clear()
            points = chart_points(self.values, self.width, self.height)
            if not points:
                return
            shifted = [
                coord + (self.x if idx % 2 == 0 else self.y)
                for idx, coord in enumerate(points)
            ]
            with self.canvas:
                Color(0.2, 0.6, 1.0, 1.0)
                Line(points=shifted, width=2)

    class ChartView(BoxLayout):
        """Header, graph and horizontal axis for one metric."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(orientation="vertical", spacing=2, **kwargs)
            self.title = Label(text="Data", size_hint_y=None, height=24, bold=True)
            self.detail = Label(text="", size_hint_y=None, height=20)
            self.graph = GraphWidget()
            self.axis = BoxLayout(orientation="horizontal", size_hint_y=None, height=20)
            self.legend = Label(text="", size_hint_y=None, height=20)
            for child in (self.title, self.detail, self.graph, self.axis, self.legend):
                self.add_widget(child)

        def update(self, chart: ChartModel) -> None:
            self.title.text = chart.title
            self.detail.text = chart.subtitle
            self.axis.clear_widgets()
            for marker in chart.axis_markers:
                self.axis.add_widget(Label(text=marker, font_size=12))
            if chart.series:
                self.graph.set_values(chart.series[0].values)
                self.legend.text = chart.series[0].title

    class MovilidadApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.store = SQLiteStore(Path.cwd() / "movilidad_tool.sqlite3")
            self.app_config = self.store.load_config()
            self.health_store = LocalHealthStore()
            self.context = HealthContext(
                health_store=self.health_store, storage=self.store
            )
            self.aggregator = StatisticsAggregator(self.context)
            self.controller = MobilityChartController(
                self.aggregator,
                MOBILITY_METRICS,
                dispatch=ui_dispatch,
                time_range=self.app_config.time_range,
            )
            self.controller.add_listener(self._on_chart)
            self.watcher = LiveUpdateWatcher(
                self.context,
                _make_sync(self.app_config),
                dispatch=ui_dispatch,
                on_batch=self._on_batch,
            )
            self.chart_views: dict[str, ChartView] = {}
            self.status: Label | None = None

        def build(self) -> BoxLayout:
            Window.bind(on_key_down=self._on_key_down)

            root = BoxLayout(orientation="vertical", spacing=8, padding=10)
            root.add_widget(
                Label(
                    text="Movilidad: pasos, distancia y velocidad al caminar.",
                    size_hint_y=None,
                    height=36,
                )
            )

            root.add_widget(
                button_row(
                    [(text, self._range_handler(tr)) for text, tr in RANGE_BUTTONS]
                )
            )
            root.add_widget(
                button_row(
                    [
                        ("Configuracion", self._open_config_popup),
                        ("Reimportar", lambda *_a: self._import_samples()),
                        ("Exportar Excel", self._on_export),
                        ("Salir", lambda *_a: self.stop()),
                    ]
                )
            )

            self.status = Label(text="Sin datos", size_hint_y=None, height=30)
            root.add_widget(self.status)

            charts = BoxLayout(orientation="vertical", spacing=12)
            for metric in MOBILITY_METRICS:
                view = ChartView()
                self.chart_views[metric] = view
                charts.add_widget(view)
            root.add_widget(charts)

            self._import_samples()
            self._start()
            return root

        def on_stop(self) -> None:
            self.watcher.stop()
            self.aggregator.shutdown()
            self.context.close()
            _close_sync(self.watcher.sync)

        def _on_key_down(
            self,
            _window: object,
            keycode: int,
            _scancode: int,
            _text: str,
            _modifiers: list[str],
        ) -> bool:
            # Esc: salir de fullscreen o cerrar app.
            if keycode != 27:
                return False
            if Window.fullscreen:
                Window.fullscreen = False
            else:
                self.stop()
            return True

        def _start(self) -> None:
            if not self.health_store.request_authorization(MOBILITY_METRICS):
                self._set_status("Sin autorizacion para leer los datos.")
                return
            self.watcher.start(MOBILITY_METRICS, self.controller.time_range)
            self.controller.load_data()

        def _range_handler(self, time_range: TimeRange) -> Callable[..., None]:
            def handler(*_args: object) -> None:
                self.controller.select_time_range(time_range)
                self.app_config = AppConfig(
                    fit_root=self.app_config.fit_root,
                    export_dir=self.app_config.export_dir,
                    time_range=time_range,
                    sync_url=self.app_config.sync_url,
                )
                self.store.save_config(self.app_config)

            return handler

        def _import_samples(self) -> None:
            if not self.app_config.fit_root:
                self._set_status("Configura la carpeta de Google Fit.")
                return
            source = GoogleFitSource(
                GoogleFitPaths(root=Path(self.app_config.fit_root).expanduser())
            )
            try:
                samples = source.load()
            except Exception as exc:
                self._show_error("importar", exc)
                return
            added = self.health_store.save_samples(samples)
            self._set_status(f"Importadas {added} muestras nuevas.")

        def _on_chart(self, metric: str, chart: ChartModel) -> None:
            view = self.chart_views.get(metric)
            if view is not None:
                view.update(chart)

        def _on_batch(self, batch: AnchoredBatch) -> None:
            self._set_status(
                f"{batch.metric}: {len(batch.added)} nuevas, "
                f"{len(batch.deleted)} borradas."
            )
            self.controller.load_data()

        def _on_export(self, _: object) -> None:
            out_dir = (
                Path(self.app_config.export_dir).expanduser()
                if self.app_config.export_dir
                else Path.cwd() / "salidas"
            )
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            time_range = self.controller.time_range.value
            out_path = out_dir / f"movilidad_{time_range}_{timestamp}.xlsx"
            series = [self.controller.series(m) for m in MOBILITY_METRICS]
            try:
                write_chart_xlsx(series, out_path, ExcelLayout())
            except Exception as exc:
                self._show_error("exportar", exc)
                return
            self._set_status(f"Excel generado: {out_path}")

        def _open_config_popup(self, _: object) -> None:
            inputs: dict[str, TextInput] = {}

            def make_row(label: str, key: str, initial: str, browse: bool) -> BoxLayout:
                row = BoxLayout(orientation="horizontal", size_hint_y=None, height=36)
                row.add_widget(Label(text=label, size_hint_x=0.25))
                inp = TextInput(text=initial, multiline=False)
                row.add_widget(inp)
                if browse:
                    browse_btn = Button(text="Browse", size_hint_x=0.2)
                    browse_btn.bind(
                        on_press=lambda *_args: self._open_path_chooser(inp)
                    )
                    row.add_widget(browse_btn)
                inputs[key] = inp
                return row

            content = BoxLayout(orientation="vertical", spacing=8, padding=8)
            content.add_widget(
                make_row("Path Google Fit", "fit_root", self.app_config.fit_root, True)
            )
            content.add_widget(
                make_row("Path salida", "export_dir", self.app_config.export_dir, True)
            )
            content.add_widget(
                make_row("URL sync", "sync_url", self.app_config.sync_url, False)
            )
            content.add_widget(Widget())

            popup = Popup(title="Configuracion", content=content, size_hint=(0.9, 0.6))
            content.add_widget(
                button_row(
                    [
                        ("Cancelar", lambda *_a: popup.dismiss()),
                        (
                            "Guardar",
                            lambda *_a: self._save_popup_config(popup, inputs),
                        ),
                    ]
                )
            )
            popup.open()

        def _open_path_chooser(self, target_input: TextInput) -> None:
            current = target_input.text.strip()
            chooser = FileChooserListView(
                path=str(Path(current).expanduser() if current else Path.home()),
                dirselect=True,
            )
            content = BoxLayout(orientation="vertical")
            popup = Popup(
                title="Seleccionar carpeta", content=content, size_hint=(0.9, 0.9)
            )

            def use_folder(*_: object) -> None:
                if chooser.selection:
                    target_input.text = chooser.selection[0]
                else:
                    target_input.text = chooser.path
                popup.dismiss()

            chooser.bind(on_submit=use_folder)
            content.add_widget(chooser)
            content.add_widget(
                button_row(
                    [
                        ("Cancelar", lambda *_a: popup.dismiss()),
                        ("Usar carpeta", use_folder),
                    ]
                )
            )
            popup.open()

        def _save_popup_config(
            self, popup: Popup, inputs: dict[str, TextInput]
        ) -> None:
            previous = self.app_config
            self.app_config = AppConfig(
                fit_root=inputs["fit_root"].text.strip(),
                export_dir=inputs["export_dir"].text.strip(),
                time_range=self.controller.time_range,
                sync_url=inputs["sync_url"].text.strip(),
            )
            self.store.save_config(self.app_config)
            switch_sync(self.watcher, previous, self.app_config)
            popup.dismiss()
            self._set_status("Configuracion guardada.")
            self._import_samples()

        def _set_status(self, text: str) -> None:
            if self.status is not None:
                self.status.text = text

        def _show_error(self, action: str, exc: Exception) -> None:
            error_type = type(exc).__name__
            logger.error("Error al %s: %s", action, traceback.format_exc())
            self._set_status(f"Error al {action} ({error_type}): {exc}")

    MovilidadApp().run()
    return 0


def _make_sync(config: AppConfig) -> NetworkSync:
    if config.sync_url:
        return HttpSync(config.sync_url)
    return LoggingSync()


def _close_sync(sync: NetworkSync) -> None:
    if isinstance(sync, HttpSync):
        sync.close()


def switch_sync(
    watcher: LiveUpdateWatcher, previous: AppConfig, config: AppConfig
) -> None:
    """Point the watcher at the sync of ``config`` when the URL changed."""
    if config.sync_url == previous.sync_url:
        return
    old = watcher.sync
    watcher.set_sync(_make_sync(config))
    _close_sync(old)
    logger.info("Sync target changed to %s", config.sync_url or "log only")
