from __future__ import annotations

import logging
import threading
from pathlib import Path
from tkinter import filedialog, messagebox

import customtkinter as ctk

from lazywebp.core.converter import ImageConverter
from lazywebp.core.discovery import filter_supported_images
from lazywebp.core.errors import ConversionError
from lazywebp.core.models import DEFAULT_QUALITY, ConversionResult, ConversionTask, FileConversionOutcome
from lazywebp.core.report import format_progress

logger = logging.getLogger(__name__)


class MainWindow(ctk.CTk):
    def __init__(self) -> None:
        super().__init__()

        self.title("LazyWebp")
        self.geometry("820x700")
        self.minsize(720, 600)

        self.selected_inputs: list[Path] = []
        self.output_dir: Path | None = None
        self.converter: ImageConverter | None = None

        self._build_ui()

    def _build_ui(self) -> None:
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(4, weight=1)

        controls = ctk.CTkFrame(self)
        controls.grid(row=0, column=0, sticky="ew", padx=18, pady=(18, 10))
        controls.grid_columnconfigure((0, 1, 2), weight=1)

        self.add_files_button = ctk.CTkButton(controls, text="Add Images", command=self._pick_files)
        self.add_files_button.grid(row=0, column=0, padx=10, pady=10, sticky="ew")

        self.add_folder_button = ctk.CTkButton(controls, text="Add Folder", command=self._pick_folder)
        self.add_folder_button.grid(row=0, column=1, padx=10, pady=10, sticky="ew")

        self.clear_inputs_button = ctk.CTkButton(controls, text="Clear", command=self._clear_inputs)
        self.clear_inputs_button.grid(row=0, column=2, padx=10, pady=10, sticky="ew")

        options = ctk.CTkFrame(self)
        options.grid(row=1, column=0, sticky="ew", padx=18, pady=(0, 10))
        options.grid_columnconfigure((0, 1), weight=1)

        self.output_label = ctk.CTkLabel(options, text="Output: next to source files")
        self.output_label.grid(row=0, column=0, sticky="w", padx=12, pady=(12, 6))

        output_buttons = ctk.CTkFrame(options, fg_color="transparent")
        output_buttons.grid(row=0, column=1, sticky="e", padx=12, pady=(12, 6))

        self.select_output_button = ctk.CTkButton(
            output_buttons, text="Select Output Folder", command=self._pick_output_dir
        )
        self.select_output_button.grid(row=0, column=0, padx=(0, 6))

        self.clear_output_button = ctk.CTkButton(
            output_buttons, text="Same Folder", width=110, command=self._clear_output_dir
        )
        self.clear_output_button.grid(row=0, column=1)

        ctk.CTkLabel(options, text="WebP Quality").grid(row=1, column=0, sticky="w", padx=12)
        self.quality_value = ctk.StringVar(value=str(DEFAULT_QUALITY))
        self.quality_slider = ctk.CTkSlider(
            options,
            from_=1,
            to=100,
            number_of_steps=99,
            command=self._on_quality_change,
        )
        self.quality_slider.set(DEFAULT_QUALITY)
        self.quality_slider.grid(row=2, column=0, sticky="ew", padx=12, pady=(4, 12))

        self.quality_label = ctk.CTkLabel(options, textvariable=self.quality_value)
        self.quality_label.grid(row=2, column=1, sticky="w", padx=12)

        self.recursive_var = ctk.BooleanVar(value=False)
        self.recursive_checkbox = ctk.CTkCheckBox(
            options,
            text="Include subfolders",
            variable=self.recursive_var,
        )
        self.recursive_checkbox.grid(row=3, column=0, sticky="w", padx=12, pady=(0, 12))

        selected_frame = ctk.CTkFrame(self)
        selected_frame.grid(row=2, column=0, sticky="nsew", padx=18, pady=(0, 10))
        selected_frame.grid_columnconfigure(0, weight=1)

        self.inputs_label = ctk.CTkLabel(selected_frame, text="Nothing selected")
        self.inputs_label.grid(row=0, column=0, sticky="w", padx=12, pady=(10, 6))
        self.selected_inputs_text = ctk.CTkTextbox(selected_frame, height=110)
        self.selected_inputs_text.grid(row=1, column=0, sticky="nsew", padx=12, pady=(0, 12))
        self.selected_inputs_text.configure(state="disabled")

        progress_frame = ctk.CTkFrame(self)
        progress_frame.grid(row=3, column=0, sticky="ew", padx=18, pady=(0, 10))
        progress_frame.grid_columnconfigure(0, weight=1)

        self.progress_label = ctk.CTkLabel(progress_frame, text="Progress: 0/0")
        self.progress_label.grid(row=0, column=0, sticky="w", padx=12, pady=(10, 6))

        self.progress_bar = ctk.CTkProgressBar(progress_frame)
        self.progress_bar.set(0)
        self.progress_bar.grid(row=1, column=0, sticky="ew", padx=12, pady=(0, 12))

        logs_frame = ctk.CTkFrame(self)
        logs_frame.grid(row=4, column=0, sticky="nsew", padx=18, pady=(0, 10))
        logs_frame.grid_rowconfigure(1, weight=1)
        logs_frame.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(logs_frame, text="Logs").grid(row=0, column=0, sticky="w", padx=12, pady=(10, 6))

        self.logs_text = ctk.CTkTextbox(logs_frame)
        self.logs_text.grid(row=1, column=0, sticky="nsew", padx=12, pady=(0, 12))

        actions = ctk.CTkFrame(self)
        actions.grid(row=5, column=0, sticky="ew", padx=18, pady=(0, 18))
        actions.grid_columnconfigure((0, 1), weight=1)

        self.start_button = ctk.CTkButton(actions, text="Convert to WebP", command=self._start_conversion)
        self.start_button.grid(row=0, column=0, sticky="ew", padx=10, pady=10)

        self.cancel_button = ctk.CTkButton(
            actions,
            text="Cancel",
            command=self._cancel_conversion,
            state="disabled",
            fg_color="transparent",
            border_width=1,
            text_color=("gray10", "gray90"),
        )
        self.cancel_button.grid(row=0, column=1, sticky="ew", padx=10, pady=10)

    def _pick_files(self) -> None:
        selected = filedialog.askopenfilenames(
            title="Select images",
            filetypes=[
                ("Images", "*.jpg *.jpeg *.png *.gif *.bmp *.tiff *.webp"),
                ("All files", "*.*"),
            ],
        )

        if not selected:
            return

        filtered = filter_supported_images([Path(path) for path in selected])
        if not filtered:
            messagebox.showwarning("No supported images", "None of the selected files are supported.")
            return

        self._add_inputs(filtered)
        self._log(f"Added {len(filtered)} image(s).")

    def _pick_folder(self) -> None:
        selected = filedialog.askdirectory(title="Select a folder of images")
        if not selected:
            return

        self._add_inputs([Path(selected)])
        self._log(f"Added folder: {selected}")

    def _add_inputs(self, paths: list[Path]) -> None:
        for path in paths:
            if path not in self.selected_inputs:
                self.selected_inputs.append(path)
        self._refresh_selected_inputs()

    def _clear_inputs(self) -> None:
        self.selected_inputs = []
        self._refresh_selected_inputs()

    def _pick_output_dir(self) -> None:
        selected = filedialog.askdirectory(title="Select output folder")
        if not selected:
            return

        self.output_dir = Path(selected)
        self.output_label.configure(text=f"Output: {self.output_dir}")
        self._log(f"Output folder set to: {self.output_dir}")

    def _clear_output_dir(self) -> None:
        self.output_dir = None
        self.output_label.configure(text="Output: next to source files")

    def _on_quality_change(self, value: float) -> None:
        self.quality_value.set(str(int(value)))

    def _start_conversion(self) -> None:
        if not self.selected_inputs:
            messagebox.showerror("Nothing to convert", "Please add at least one image or folder.")
            return

        self._clear_logs()
        self.progress_bar.set(0)
        self.progress_label.configure(text="Progress: scanning...")

        self.converter = ImageConverter(quality=int(float(self.quality_slider.get())))
        self.start_button.configure(state="disabled")
        self.cancel_button.configure(state="normal")
        self._log("Starting conversion...")

        worker = threading.Thread(
            target=self._run_conversion,
            args=(self.converter, list(self.selected_inputs), self.output_dir, self.recursive_var.get()),
            daemon=True,
        )
        worker.start()

    def _cancel_conversion(self) -> None:
        if self.converter is not None:
            self.converter.cancel()
        self.cancel_button.configure(state="disabled")

    def _run_conversion(
        self,
        converter: ImageConverter,
        inputs: list[Path],
        output_dir: Path | None,
        recursive: bool,
    ) -> None:
        try:
            result = converter.run_all(
                inputs,
                output_dir,
                recursive,
                on_progress=self._on_progress,
                on_file_done=self._on_file_done,
                on_log=self._log,
            )
        except (ConversionError, OSError) as error:
            logger.error("Conversion aborted: %s", error)
            message = str(error)
            self.after(0, lambda: self._finish_with_error(message))
            return

        self.after(0, lambda: self._finish(result))

    def _finish(self, result: ConversionResult) -> None:
        self._reset_buttons()
        summary = (
            f"{'Cancelled' if result.cancelled else 'Done'}. "
            f"Converted: {result.processed}/{result.total_files}. "
            f"Skipped: {result.skipped}. "
            f"Failed: {len(result.failed)}. "
            f"Saved: {result.saved_size} of {result.total_size} ({result.compression_ratio}) "
            f"in {result.duration}."
        )
        self._log(summary)
        for failed in result.failed:
            self._log(f"  - {failed.file}: {failed.error}")

        if result.has_failures:
            messagebox.showwarning("Batch finished with errors", summary)
        else:
            messagebox.showinfo("Batch finished", summary)

    def _finish_with_error(self, message: str) -> None:
        self._reset_buttons()
        self.progress_label.configure(text="Progress: 0/0")
        self._log(f"Error: {message}")
        messagebox.showerror("Conversion failed", message)

    def _reset_buttons(self) -> None:
        self.start_button.configure(state="normal")
        self.cancel_button.configure(state="disabled")

    def _on_progress(self, current: int, total: int, saved_bytes: int) -> None:
        def update() -> None:
            fraction = current / total if total else 0
            self.progress_bar.set(fraction)
            self.progress_label.configure(text=format_progress(current, total, saved_bytes))

        self.after(0, update)

    def _on_file_done(self, task: ConversionTask, outcome: FileConversionOutcome) -> None:
        if outcome.skipped:
            self._log(f"Up to date: {task.input_path.name}")
        elif outcome.success:
            self._log(f"Saved: {task.output_path.name}")

    def _log(self, message: str) -> None:
        def append() -> None:
            self.logs_text.insert("end", message + "\n")
            self.logs_text.see("end")

        self.after(0, append)

    def _clear_logs(self) -> None:
        self.logs_text.delete("1.0", "end")

    def _refresh_selected_inputs(self) -> None:
        count = len(self.selected_inputs)
        self.inputs_label.configure(text=f"Selected: {count}" if count else "Nothing selected")
        self.selected_inputs_text.configure(state="normal")
        self.selected_inputs_text.delete("1.0", "end")
        for path in self.selected_inputs:
            suffix = "/" if path.is_dir() else ""
            self.selected_inputs_text.insert("end", f"{path}{suffix}\n")
        self.selected_inputs_text.configure(state="disabled")


def launch() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s")
    window = MainWindow()
    window.mainloop()


if __name__ == "__main__":
    launch()
