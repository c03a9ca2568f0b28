"""
Settings dialog for provider, model, temperature and prompt.
"""

from PyQt6.QtWidgets import (
    QDialog,
    QVBoxLayout,
    QHBoxLayout,
    QFormLayout,
    QComboBox,
    QLineEdit,
    QSlider,
    QLabel,
    QTextEdit,
    QPushButton,
)
from PyQt6.QtCore import Qt

from ..models import Settings
from ..utils.constants import PROVIDERS, DEFAULT_PROMPT, default_model_for

# Slider works in hundredths; 5 == 0.05 step
TEMPERATURE_STEPS = 100
TEMPERATURE_STEP = 5


class SettingsDialog(QDialog):
    """
    Edit Settings in place.

    `settings` is only replaced when the dialog is accepted.
    """

    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumWidth(480)

        self.settings = settings
        self._init_ui()
        self._load(settings)

    def _init_ui(self):
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.provider_combo = QComboBox()
        self.provider_combo.addItems(sorted(PROVIDERS))
        self.provider_combo.currentTextChanged.connect(self._on_provider_changed)
        form.addRow("Provider:", self.provider_combo)

        self.model_input = QLineEdit()
        form.addRow("Model:", self.model_input)

        temp_layout = QHBoxLayout()
        self.temperature_slider = QSlider(Qt.Orientation.Horizontal)
        self.temperature_slider.setRange(0, TEMPERATURE_STEPS)
        self.temperature_slider.setSingleStep(TEMPERATURE_STEP)
        self.temperature_slider.setPageStep(TEMPERATURE_STEP * 2)
        self.temperature_slider.valueChanged.connect(self._on_temperature_changed)
        temp_layout.addWidget(self.temperature_slider)
        self.temperature_label = QLabel()
        self.temperature_label.setMinimumWidth(40)
        temp_layout.addWidget(self.temperature_label)
        form.addRow("Temperature:", temp_layout)

        self.prompt_input = QTextEdit()
        self.prompt_input.setAcceptRichText(False)
        self.prompt_input.setMinimumHeight(120)
        form.addRow("Prompt:", self.prompt_input)

        layout.addLayout(form)

        btn_layout = QHBoxLayout()
        reset_btn = QPushButton("Reset prompt")
        reset_btn.clicked.connect(lambda: self.prompt_input.setPlainText(DEFAULT_PROMPT))
        btn_layout.addWidget(reset_btn)
        btn_layout.addStretch()

        save_btn = QPushButton("Save")
        save_btn.setDefault(True)
        save_btn.clicked.connect(self._on_save)
        btn_layout.addWidget(save_btn)

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        btn_layout.addWidget(cancel_btn)
        layout.addLayout(btn_layout)

    def _load(self, settings: Settings):
        self.provider_combo.setCurrentText(settings.provider)
        self.model_input.setText(settings.model)
        self.temperature_slider.setValue(round(settings.temperature * TEMPERATURE_STEPS))
        self._on_temperature_changed(self.temperature_slider.value())
        self.prompt_input.setPlainText(settings.prompt)

    def _on_provider_changed(self, provider: str):
        # Swap the model only if it is still the other provider's default
        current = self.model_input.text().strip()
        defaults = {default_model_for(name) for name in PROVIDERS}
        if not current or current in defaults:
            self.model_input.setText(default_model_for(provider))

    def _on_temperature_changed(self, value: int):
        # Snap to the 0.05 grid when dragged
        snapped = round(value / TEMPERATURE_STEP) * TEMPERATURE_STEP
        if snapped != value:
            self.temperature_slider.setValue(snapped)
            return
        self.temperature_label.setText(f"{snapped / TEMPERATURE_STEPS:.2f}")

    def _on_save(self):
        self.settings = Settings(
            provider=self.provider_combo.currentText(),
            model=self.model_input.text().strip()
            or default_model_for(self.provider_combo.currentText()),
            temperature=self.temperature_slider.value() / TEMPERATURE_STEPS,
            prompt=self.prompt_input.toPlainText().strip() or DEFAULT_PROMPT,
        )
        self.accept()
