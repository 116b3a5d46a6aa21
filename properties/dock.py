"""
properties/dock.py

Property panel for the document and the selected section.

Two pages in a QStackedWidget:
- Document page: title, journal, citation, header color, layout template
- Section page: title, text, statistics, icon or chart, layout, scales

Text fields preview while typing and commit one history entry when they lose
focus; sliders preview while dragged and commit on release.
"""

from __future__ import annotations

from typing import List, Optional

from PyQt6.QtCore import QEvent, QObject, Qt, pyqtSignal
from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import (
    QButtonGroup,
    QColorDialog,
    QComboBox,
    QDockWidget,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QSlider,
    QStackedWidget,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from debug_trace import trace
from icons import list_glyphs
from layouts import list_templates
from models import (
    THEME_COLORS,
    BitmapIcon,
    ChartPoint,
    GlyphIcon,
    Section,
    SectionLayout,
    icon_to_str,
    parse_icon,
)
from session import EditSession
from utils import hex_to_qcolor, qcolor_to_hex

PAGE_DOCUMENT = 0
PAGE_SECTION = 1

SCALE_MIN = 50      # percent
SCALE_MAX = 200

compact_btn_style = "padding: 2px 6px; font-size: 10px; min-width: 40px;"


class _FocusOutFilter(QObject):
    """Calls *callback* when the watched widget loses keyboard focus."""

    def __init__(self, callback, parent=None):
        super().__init__(parent)
        self._callback = callback

    def eventFilter(self, obj, event):
        if event.type() == QEvent.Type.FocusOut:
            self._callback()
        return False


class PropertyPanel(QWidget):
    """
    Property panel bound to an EditSession.

    Signals:
        template_requested(str): User picked another layout template.  The
            main window confirms and calls ``session.switch_template``.
        polish_requested(str, str): Section id and text to send to the
            polish service.
    """

    template_requested = pyqtSignal(str)
    polish_requested = pyqtSignal(str, str)

    def __init__(self, session: EditSession, parent=None):
        super().__init__(parent)
        self.session = session
        self._updating = False
        self._section_id: Optional[str] = None

        self._init_ui()
        self._connect_signals()

        session.on_selection_changed(self._on_selection_changed)
        session.on_sections_changed(self._on_sections_changed)
        session.on_document_changed(self.refresh_document)
        self.refresh_document()
        self._on_selection_changed(session.selected_id)

    # ----------------------------
    # UI construction
    # ----------------------------

    def _init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.pages = QStackedWidget()
        layout.addWidget(self.pages)

        self.pages.addWidget(self._build_document_page())
        self.pages.addWidget(self._build_section_page())

    def _build_document_page(self) -> QWidget:
        page = QWidget()
        v = QVBoxLayout(page)
        v.addWidget(QLabel("<b>Document</b>"))

        form = QFormLayout()
        self.doc_title_edit = QLineEdit()
        self.doc_journal_edit = QLineEdit()
        self.doc_journal_edit.setPlaceholderText("JAMA")
        self.doc_citation_edit = QLineEdit()
        form.addRow("Title:", self.doc_title_edit)
        form.addRow("Journal:", self.doc_journal_edit)
        form.addRow("Citation:", self.doc_citation_edit)

        color_row = QWidget()
        color_layout = QHBoxLayout(color_row)
        color_layout.setContentsMargins(0, 0, 0, 0)
        color_layout.setSpacing(4)
        self.color_buttons: List[QPushButton] = []
        for color in THEME_COLORS:
            btn = QPushButton()
            btn.setFixedSize(22, 22)
            btn.setToolTip(color)
            btn.setStyleSheet(f"background-color: {color}; border: 1px solid #888; border-radius: 11px;")
            btn.setProperty("hex_color", color)
            self.color_buttons.append(btn)
            color_layout.addWidget(btn)
        self.custom_color_btn = QPushButton("Custom...")
        self.custom_color_btn.setStyleSheet(compact_btn_style)
        color_layout.addWidget(self.custom_color_btn)
        color_layout.addStretch(1)
        form.addRow("Header color:", color_row)

        self.template_combo = QComboBox()
        for tpl in list_templates():
            self.template_combo.addItem(tpl.name, tpl.id)
            self.template_combo.setItemData(
                self.template_combo.count() - 1, tpl.description, Qt.ItemDataRole.ToolTipRole
            )
        form.addRow("Layout:", self.template_combo)

        v.addLayout(form)
        hint = QLabel("Click a section on the canvas to edit it.")
        hint.setStyleSheet("color: #6B7280;")
        hint.setWordWrap(True)
        v.addWidget(hint)
        v.addStretch(1)
        return page

    def _build_section_page(self) -> QWidget:
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QScrollArea.Shape.NoFrame)
        page = QWidget()
        scroll.setWidget(page)
        v = QVBoxLayout(page)

        header = QHBoxLayout()
        self.back_btn = QPushButton("< Document")
        self.back_btn.setStyleSheet(compact_btn_style)
        header.addWidget(self.back_btn)
        header.addStretch(1)
        v.addLayout(header)

        form = QFormLayout()
        self.sec_title_edit = QLineEdit()
        form.addRow("Title:", self.sec_title_edit)

        self.sec_content_edit = QPlainTextEdit()
        self.sec_content_edit.setMinimumHeight(120)
        self._content_filter = _FocusOutFilter(self._commit_content, self)
        self.sec_content_edit.installEventFilter(self._content_filter)
        form.addRow("Text:", self.sec_content_edit)

        self.polish_btn = QPushButton("Polish text")
        self.polish_btn.setToolTip("Shorten the text with the writing assistant")
        form.addRow("", self.polish_btn)

        self.sec_stats_edit = QLineEdit()
        self.sec_stats_edit.setPlaceholderText("e.g. HR 0.72 (95% CI 0.61-0.85)")
        form.addRow("Statistics:", self.sec_stats_edit)
        v.addLayout(form)

        # Icon
        v.addWidget(QLabel("<b>Icon</b>"))
        icon_row = QHBoxLayout()
        self.icon_combo = QComboBox()
        self.icon_combo.setEditable(True)
        self.icon_combo.addItems(list_glyphs())
        icon_row.addWidget(self.icon_combo, 1)
        self.icon_image_btn = QPushButton("Image...")
        self.icon_image_btn.setStyleSheet(compact_btn_style)
        icon_row.addWidget(self.icon_image_btn)
        self.icon_clear_btn = QPushButton("None")
        self.icon_clear_btn.setStyleSheet(compact_btn_style)
        icon_row.addWidget(self.icon_clear_btn)
        v.addLayout(icon_row)

        # Chart
        v.addWidget(QLabel("<b>Chart</b>"))
        self.chart_table = QTableWidget(0, 2)
        self.chart_table.setHorizontalHeaderLabels(["Label", "Value"])
        self.chart_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.chart_table.verticalHeader().setVisible(False)
        self.chart_table.setMaximumHeight(140)
        v.addWidget(self.chart_table)
        chart_row = QHBoxLayout()
        self.chart_add_btn = QPushButton("+ Bar")
        self.chart_remove_btn = QPushButton("- Bar")
        self.chart_apply_btn = QPushButton("Show chart")
        self.chart_clear_btn = QPushButton("Remove chart")
        for b in (self.chart_add_btn, self.chart_remove_btn, self.chart_apply_btn, self.chart_clear_btn):
            b.setStyleSheet(compact_btn_style)
            chart_row.addWidget(b)
        v.addLayout(chart_row)

        # Layout
        v.addWidget(QLabel("<b>Layout</b>"))
        layout_row = QHBoxLayout()
        self.layout_group = QButtonGroup(self)
        self.layout_group.setExclusive(True)
        self.layout_buttons = {}
        for value, label in ((SectionLayout.TOP, "Visual top"), (SectionLayout.BOTTOM, "Visual bottom"),
                             (SectionLayout.LEFT, "Visual left"), (SectionLayout.RIGHT, "Visual right")):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.setStyleSheet(compact_btn_style)
            btn.setProperty("layout_value", value)
            self.layout_group.addButton(btn)
            self.layout_buttons[value] = btn
            layout_row.addWidget(btn)
        v.addLayout(layout_row)

        # Scales
        scale_form = QFormLayout()
        self.image_scale_slider = self._make_scale_slider()
        self.text_scale_slider = self._make_scale_slider()
        self.image_scale_label = QLabel("100%")
        self.text_scale_label = QLabel("100%")
        scale_form.addRow("Image size:", self._slider_row(self.image_scale_slider, self.image_scale_label))
        scale_form.addRow("Text size:", self._slider_row(self.text_scale_slider, self.text_scale_label))
        v.addLayout(scale_form)

        v.addStretch(1)
        return scroll

    @staticmethod
    def _make_scale_slider() -> QSlider:
        s = QSlider(Qt.Orientation.Horizontal)
        s.setRange(SCALE_MIN, SCALE_MAX)
        s.setSingleStep(5)
        s.setPageStep(25)
        s.setValue(100)
        return s

    @staticmethod
    def _slider_row(slider: QSlider, label: QLabel) -> QWidget:
        row = QWidget()
        h = QHBoxLayout(row)
        h.setContentsMargins(0, 0, 0, 0)
        h.addWidget(slider, 1)
        label.setMinimumWidth(40)
        h.addWidget(label)
        return row

    def _connect_signals(self):
        # Document page
        self.doc_title_edit.editingFinished.connect(
            lambda: self._set_doc_field(self.session.set_title, self.doc_title_edit.text()))
        self.doc_journal_edit.editingFinished.connect(
            lambda: self._set_doc_field(self.session.set_journal_name, self.doc_journal_edit.text()))
        self.doc_citation_edit.editingFinished.connect(
            lambda: self._set_doc_field(self.session.set_citation, self.doc_citation_edit.text()))
        for btn in self.color_buttons:
            btn.clicked.connect(lambda _checked=False, b=btn: self.session.set_header_color(b.property("hex_color")))
        self.custom_color_btn.clicked.connect(self.pick_header_color)
        self.template_combo.activated.connect(self._on_template_activated)

        # Section page
        self.back_btn.clicked.connect(self.session.clear_selection)
        self.sec_title_edit.textEdited.connect(lambda t: self._preview_fields(title=t))
        self.sec_title_edit.editingFinished.connect(lambda: self._commit("Edit title"))
        self.sec_content_edit.textChanged.connect(self._on_content_changed)
        self.sec_stats_edit.textEdited.connect(lambda t: self._preview_fields(statistics=t))
        self.sec_stats_edit.editingFinished.connect(lambda: self._commit("Edit statistics"))
        self.polish_btn.clicked.connect(self._on_polish_clicked)

        self.icon_combo.activated.connect(self._on_glyph_chosen)
        self.icon_image_btn.clicked.connect(self._on_image_chosen)
        self.icon_clear_btn.clicked.connect(lambda: self._assign_icon(None))

        self.chart_add_btn.clicked.connect(self._add_chart_row)
        self.chart_remove_btn.clicked.connect(self._remove_chart_row)
        self.chart_apply_btn.clicked.connect(self._apply_chart)
        self.chart_clear_btn.clicked.connect(self._clear_chart)

        self.layout_group.buttonClicked.connect(self._on_layout_clicked)

        for slider, field_name in ((self.image_scale_slider, "image_scale"),
                                   (self.text_scale_slider, "text_scale")):
            slider.valueChanged.connect(lambda v, s=slider, f=field_name: self._on_scale_changed(s, f, v))
            slider.sliderReleased.connect(lambda f=field_name: self._commit(f"Change {f.replace('_', ' ')}"))

    # ----------------------------
    # Session → widgets
    # ----------------------------

    def _on_selection_changed(self, section_id: Optional[str]):
        if self._section_id is not None and self.session.has_draft:
            # Pending text edit of the previous section
            self.session.commit()
        self._section_id = section_id
        if section_id is None:
            self.pages.setCurrentIndex(PAGE_DOCUMENT)
            return
        self.pages.setCurrentIndex(PAGE_SECTION)
        self.refresh_section()

    def _on_sections_changed(self):
        if self._updating or self._section_id is None:
            return
        # Undo/redo or canvas gestures; keep the field being typed into
        if not self.session.has_draft:
            self.refresh_section()

    def refresh_document(self):
        doc = self.session.document
        self._updating = True
        try:
            for edit, value in ((self.doc_title_edit, doc.title),
                                (self.doc_journal_edit, doc.journal_name),
                                (self.doc_citation_edit, doc.citation)):
                if not edit.hasFocus() and edit.text() != value:
                    edit.setText(value)
            idx = self.template_combo.findData(doc.layout_template_id)
            if idx >= 0:
                self.template_combo.setCurrentIndex(idx)
        finally:
            self._updating = False

    def refresh_section(self):
        section = self._current_section()
        if section is None:
            return
        self._updating = True
        try:
            if not self.sec_title_edit.hasFocus():
                self.sec_title_edit.setText(section.title)
            if not self.sec_content_edit.hasFocus() and self.sec_content_edit.toPlainText() != section.content:
                self.sec_content_edit.setPlainText(section.content)
            if not self.sec_stats_edit.hasFocus():
                self.sec_stats_edit.setText(section.statistics)

            self.icon_combo.setEditText(icon_to_str(section.icon) if isinstance(section.icon, GlyphIcon) else "")
            self._load_chart_table(section)

            btn = self.layout_buttons.get(section.layout)
            if btn is not None:
                btn.setChecked(True)

            self.image_scale_slider.setValue(int(round(section.image_scale * 100)))
            self.text_scale_slider.setValue(int(round(section.text_scale * 100)))
            self.image_scale_label.setText(f"{self.image_scale_slider.value()}%")
            self.text_scale_label.setText(f"{self.text_scale_slider.value()}%")
        finally:
            self._updating = False

    def _load_chart_table(self, section: Section):
        self.chart_table.setRowCount(0)
        for p in section.chart_data:
            row = self.chart_table.rowCount()
            self.chart_table.insertRow(row)
            self.chart_table.setItem(row, 0, QTableWidgetItem(p.label))
            self.chart_table.setItem(row, 1, QTableWidgetItem(f"{p.value:g}"))

    # ----------------------------
    # Widgets → session
    # ----------------------------

    def _current_section(self) -> Optional[Section]:
        return self.session.section(self._section_id) if self._section_id else None

    def _set_doc_field(self, setter, value: str):
        if not self._updating:
            setter(value.strip())

    def _preview_fields(self, **changes):
        if self._updating:
            return
        section = self._current_section()
        if section is None:
            return
        self._updating = True
        try:
            self.session.preview_section(section.with_fields(**changes), "Edit section")
        finally:
            self._updating = False

    def _commit(self, label: str):
        if self._updating:
            return
        self._updating = True
        try:
            self.session.commit(label)
        finally:
            self._updating = False

    def _on_content_changed(self):
        self._preview_fields(content=self.sec_content_edit.toPlainText())

    def _commit_content(self):
        self._commit("Edit text")

    def _on_scale_changed(self, slider: QSlider, field_name: str, value: int):
        label = self.image_scale_label if field_name == "image_scale" else self.text_scale_label
        label.setText(f"{value}%")
        if self._updating:
            return
        self._preview_fields(**{field_name: value / 100.0})
        if not slider.isSliderDown():
            # Keyboard / page steps commit immediately
            self._commit(f"Change {field_name.replace('_', ' ')}")

    def _on_layout_clicked(self, button):
        section = self._current_section()
        if section is None or self._updating:
            return
        value = button.property("layout_value")
        if value != section.layout:
            self.session.update_section(section.with_fields(layout=value), "Change layout")

    def _assign_icon(self, icon):
        if self._section_id is not None:
            self.session.assign_icon(self._section_id, icon)

    def _on_glyph_chosen(self, _index: int):
        name = self.icon_combo.currentText().strip()
        if name:
            self._assign_icon(parse_icon(name))

    def _on_image_chosen(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Choose Image", "", "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp)"
        )
        if path:
            self._assign_icon(BitmapIcon(path))

    def _add_chart_row(self):
        row = self.chart_table.rowCount()
        self.chart_table.insertRow(row)
        self.chart_table.setItem(row, 0, QTableWidgetItem(f"Group {row + 1}"))
        self.chart_table.setItem(row, 1, QTableWidgetItem("0"))

    def _remove_chart_row(self):
        row = self.chart_table.currentRow()
        if row < 0:
            row = self.chart_table.rowCount() - 1
        if row >= 0:
            self.chart_table.removeRow(row)

    def chart_points(self) -> List[ChartPoint]:
        """Chart rows from the table; rows without a numeric value are skipped."""
        points = []
        for row in range(self.chart_table.rowCount()):
            label_item = self.chart_table.item(row, 0)
            value_item = self.chart_table.item(row, 1)
            label = label_item.text().strip() if label_item else ""
            try:
                value = float(value_item.text()) if value_item else None
            except ValueError:
                value = None
            if value is None:
                trace(f"Skipping chart row {row}: no numeric value", "WARN")
                continue
            points.append(ChartPoint(label, value))
        return points

    def _apply_chart(self):
        if self._section_id is not None:
            self.session.assign_chart(self._section_id, self.chart_points())

    def _clear_chart(self):
        if self._section_id is not None:
            self.session.assign_chart(self._section_id, [])

    def _on_template_activated(self, index: int):
        template_id = self.template_combo.itemData(index)
        if template_id and template_id != self.session.document.layout_template_id:
            self.template_requested.emit(template_id)
        else:
            self.refresh_document()

    def _on_polish_clicked(self):
        section = self._current_section()
        if section is None or not section.content.strip():
            return
        self.polish_btn.setEnabled(False)
        self.polish_btn.setText("Polishing...")
        self.polish_requested.emit(section.id, section.content)

    def reset_polish_button(self):
        self.polish_btn.setEnabled(True)
        self.polish_btn.setText("Polish text")

    def polish_finished(self, section_id: str, text: Optional[str]):
        """Apply a polish result; None leaves the original text in place."""
        self.reset_polish_button()
        if text is None:
            return
        section = self.session.section(section_id)
        if section is not None:
            self.session.update_section(section.with_fields(content=text), "Polish text")
            if section_id == self._section_id:
                self.sec_content_edit.clearFocus()
                self.refresh_section()

    def pick_header_color(self):
        """Pick a custom header color."""
        initial = hex_to_qcolor(self.session.document.header_color, QColor("#C62828"))
        c = QColorDialog.getColor(initial, self, "Pick Header Color")
        if c.isValid():
            self.session.set_header_color(qcolor_to_hex(c))


class PropertyDock(QDockWidget):
    """Dock widget hosting the PropertyPanel."""

    def __init__(self, session: EditSession, parent=None):
        super().__init__("Properties", parent)
        self.setObjectName("PropertyDock")
        self.panel = PropertyPanel(session, self)
        self.setWidget(self.panel)
        self.setMinimumWidth(320)
