#!/usr/bin/env python3
"""
Out of Office Assistant (Microsoft Graph Python Version)

Form for announcing an absence: creates the all-day meeting, schedules the
automatic replies and, for business trips, fills the travel-allowance
workbook. Progress is shown in the log panel at the bottom of the window.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import sys
from pathlib import Path
from datetime import datetime
import tkinter as tk
from tkinter import messagebox, filedialog, ttk, Button, Checkbutton, Entry, Label, Text, BooleanVar, StringVar

# Add src directory to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from out_of_office import (
    get_config,
    create_authenticator_from_config,
    build_orchestrator,
    LeaveForm,
    LeaveType,
    OrchestratorBusyError,
    format_addresses,
    initialize_log_file,
    setup_logging
)
from out_of_office.leave import LEAVE_TYPE_LABELS
from out_of_office.signature import available_signature_names, get_default_signature_html


logger = None

DATE_FORMAT = "%Y-%m-%d"
WINDOW_HEIGHT = 940


def parse_date_field(text, field_name):
    """
    Parse a YYYY-MM-DD entry.

    Raises:
        ValueError: With a message naming the field
    """
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"{field_name} must be a date in the form YYYY-MM-DD.")


class OutOfOfficeWindow:
    """
    Main window. Holds no business logic: derived values come from the
    LeaveForm and submissions go to the orchestrator.
    """

    def __init__(self, root, form, orchestrator, signature_names):
        self.root = root
        self.form = form
        self.orchestrator = orchestrator
        self.signature_names = signature_names

        root.title("Out of Office Assistant")
        root.geometry(f"620x{WINDOW_HEIGHT}")
        root.resizable(False, False)

        self.leave_type_var = StringVar()
        self.start_var = StringVar()
        self.end_var = StringVar()
        self.subject_var = StringVar()
        self.location_var = StringVar()
        self.to_var = StringVar()
        self.cc_var = StringVar()
        self.auto_reply_var = BooleanVar()
        self.destination_var = StringVar()
        self.excel_var = BooleanVar()
        self.folder_var = StringVar()

        self._build()
        self._load_form()

    # ------------------------------------------------------------------ layout

    def _build(self):
        root = self.root
        font = ("Segoe UI", 9)
        bold = ("Segoe UI", 9, "bold")

        title_label = Label(root, text="Out of Office", font=("Segoe UI", 16, "bold"))
        title_label.place(x=20, y=15, width=580, height=30)

        y = 60
        Label(root, text="Leave type:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        labels = [LEAVE_TYPE_LABELS[t] for t in LeaveType]
        self.leave_type_box = ttk.Combobox(root, textvariable=self.leave_type_var, values=labels, state="readonly")
        self.leave_type_box.place(x=150, y=y, width=200, height=22)
        self.leave_type_box.bind("<<ComboboxSelected>>", self._on_leave_type)

        y += 32
        Label(root, text="Start date:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        start_entry = Entry(root, textvariable=self.start_var, font=font)
        start_entry.place(x=150, y=y, width=110, height=22)
        Label(root, text="End date:", font=bold, anchor="w").place(x=290, y=y, width=80, height=22)
        end_entry = Entry(root, textvariable=self.end_var, font=font)
        end_entry.place(x=370, y=y, width=110, height=22)
        end_entry.bind("<FocusOut>", self._on_dates)
        end_entry.bind("<Return>", self._on_dates)
        Label(root, text="(YYYY-MM-DD)", font=("Segoe UI", 8), fg="gray").place(x=490, y=y, width=100, height=22)

        y += 32
        Label(root, text="Subject:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        Entry(root, textvariable=self.subject_var, font=font, state="readonly").place(x=150, y=y, width=450, height=22)

        y += 32
        Label(root, text="Location:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        Entry(root, textvariable=self.location_var, font=font).place(x=150, y=y, width=450, height=22)

        y += 32
        Label(root, text="To:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        Entry(root, textvariable=self.to_var, font=font).place(x=150, y=y, width=450, height=22)

        y += 32
        Label(root, text="Cc:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        Entry(root, textvariable=self.cc_var, font=font).place(x=150, y=y, width=450, height=22)

        y += 36
        Checkbutton(root, text="Set automatic replies", variable=self.auto_reply_var, font=bold,
                    anchor="w", command=self._refresh_previews).place(x=20, y=y, width=250, height=22)
        signature_text = f"Signature (from {self.signature_names[0]}):" if self.signature_names else "Signature:"
        Label(root, text=signature_text, font=font, fg="darkblue", anchor="w").place(x=300, y=y, width=300, height=22)

        y += 26
        self.signature_text = Text(root, font=("Segoe UI", 8), wrap="word")
        self.signature_text.place(x=20, y=y, width=580, height=56)

        y += 34

        y += 28
        Label(root, text="Internal reply", font=font, fg="gray", anchor="w").place(x=20, y=y, width=280, height=18)
        Label(root, text="External reply", font=font, fg="gray", anchor="w").place(x=320, y=y, width=280, height=18)
        y += 20
        self.internal_preview = Text(root, font=("Segoe UI", 8), wrap="word", bg="#F5F5F5")
        self.internal_preview.place(x=20, y=y, width=280, height=140)
        self.external_preview = Text(root, font=("Segoe UI", 8), wrap="word", bg="#F5F5F5")
        self.external_preview.place(x=320, y=y, width=280, height=140)

        y += 152
        bt_title = Label(root, text="Business trip", font=("Segoe UI", 10, "bold"), anchor="w")
        bt_title.place(x=20, y=y, width=200, height=22)

        y += 28
        Label(root, text="Destination:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        self.destination_entry = Entry(root, textvariable=self.destination_var, font=font)
        self.destination_entry.place(x=150, y=y, width=450, height=22)

        y += 32
        self.excel_check = Checkbutton(root, text="Create and fill allowance Excel", variable=self.excel_var,
                                       font=font, anchor="w")
        self.excel_check.place(x=20, y=y, width=300, height=22)

        y += 30
        Label(root, text="Save folder:", font=bold, anchor="w").place(x=20, y=y, width=120, height=22)
        self.folder_entry = Entry(root, textvariable=self.folder_var, font=font)
        self.folder_entry.place(x=150, y=y, width=360, height=22)
        self.browse_button = Button(root, text="Browse…", font=font, command=self._on_browse)
        self.browse_button.place(x=520, y=y, width=80, height=22)

        y += 40
        self.draft_button = Button(root, text="Create Draft", font=("Segoe UI", 10),
                                   command=lambda: self._on_submit(False))
        self.draft_button.place(x=110, y=y, width=120, height=32)
        self.send_button = Button(root, text="Send", font=("Segoe UI", 10, "bold"),
                                  command=lambda: self._on_submit(True))
        self.send_button.place(x=250, y=y, width=120, height=32)
        cancel_button = Button(root, text="Cancel", font=("Segoe UI", 10), command=self._on_cancel)
        cancel_button.place(x=390, y=y, width=120, height=32)

        y += 44
        Label(root, text="Log", font=bold, anchor="w").place(x=20, y=y, width=100, height=20)
        y += 22
        self.log_text = Text(root, font=("Consolas", 8), wrap="word", state="disabled")
        self.log_text.place(x=20, y=y, width=580, height=WINDOW_HEIGHT - y - 15)

    # ------------------------------------------------------------------ state

    def _load_form(self):
        """Copy the LeaveForm state into the widgets."""
        self.leave_type_var.set(LEAVE_TYPE_LABELS[self.form.leave_type])
        self.start_var.set(self.form.start_date.strftime(DATE_FORMAT))
        self.end_var.set(self.form.end_date.strftime(DATE_FORMAT))
        self.location_var.set(self.form.location)
        self.to_var.set(self.form.to_text)
        self.cc_var.set(self.form.cc_text)
        self.auto_reply_var.set(self.form.set_auto_replies)
        self.destination_var.set("")
        self.excel_var.set(self.form.create_excel)
        self.folder_var.set(self.form.excel_save_folder)
        self.signature_text.delete("1.0", "end")
        self.signature_text.insert("1.0", self.form.signature_html)
        self._refresh()

    def _store_form(self):
        """
        Copy the widgets into the LeaveForm.

        Raises:
            ValueError: If a date field cannot be parsed
        """
        self.form.start_date = parse_date_field(self.start_var.get(), "Start date")
        self.form.end_date = parse_date_field(self.end_var.get(), "End date")
        self.form.location = self.location_var.get().strip()
        self.form.to_text = self.to_var.get()
        self.form.cc_text = self.cc_var.get()
        self.form.set_auto_replies = self.auto_reply_var.get()
        self.form.signature_html = self.signature_text.get("1.0", "end-1c")
        destination = self.destination_var.get().strip()
        self.form.destination_override = destination or None
        self.form.create_excel = self.excel_var.get()
        self.form.excel_save_folder = self.folder_var.get()

    def _refresh(self):
        self.subject_var.set(self.form.subject)
        state = "normal" if self.form.is_business_trip else "disabled"
        for widget in (self.destination_entry, self.excel_check, self.folder_entry, self.browse_button):
            widget.configure(state=state)
        self._refresh_previews()

    def _refresh_previews(self, event=None):
        self.form.set_auto_replies = self.auto_reply_var.get()
        for widget, text in ((self.internal_preview, self.form.internal_preview),
                             (self.external_preview, self.form.external_preview)):
            widget.configure(state="normal")
            widget.delete("1.0", "end")
            widget.insert("1.0", text)
            widget.configure(state="disabled")

    def _log(self, line):
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.log_text.configure(state="normal")
        self.log_text.insert("end", f"[{timestamp}] {line}\n")
        self.log_text.see("end")
        self.log_text.configure(state="disabled")
        self.root.update_idletasks()

    def _set_buttons(self, enabled):
        state = "normal" if enabled else "disabled"
        self.draft_button.configure(state=state)
        self.send_button.configure(state=state)

    # ------------------------------------------------------------------ events

    def _on_leave_type(self, event=None):
        label = self.leave_type_var.get()
        for leave_type, text in LEAVE_TYPE_LABELS.items():
            if text == label:
                self.form.select_leave_type(leave_type)
                break
        self.location_var.set(self.form.location)
        self._refresh()

    def _on_dates(self, event=None):
        try:
            self.form.end_date = parse_date_field(self.end_var.get(), "End date")
        except ValueError:
            return
        self._refresh_previews()

    def _on_browse(self):
        folder = filedialog.askdirectory(title="Select folder for the allowance Excel")
        if folder:
            self.folder_var.set(folder)

    def _on_cancel(self):
        self.form.reset(keep_recipients=True)
        self._load_form()
        self._log("Form reset.")

    def _on_submit(self, send_now):
        try:
            self._store_form()
        except ValueError as e:
            messagebox.showerror("Invalid Input", str(e))
            return

        request = self.form.to_request()
        self._set_buttons(False)
        try:
            outcome = self.orchestrator.submit(request, send_now, on_line=self._log)
        except OrchestratorBusyError as e:
            self._log(f"WARNING: {e}")
            return
        finally:
            self._set_buttons(True)

        if outcome.validation_error:
            messagebox.showerror("Invalid Input", outcome.validation_error)


def main():
    """
    Main function for the out-of-office form.
    """
    global logger

    print("Out of Office Assistant (Microsoft Graph Python Version)")

    script_dir = Path(__file__).parent.parent

    log_file = initialize_log_file(script_dir, "Out of Office Assistant")
    logger = setup_logging(log_file)

    print(f"Logging to: {log_file}")
    print()

    logger.info("Script execution started")

    # Load configuration
    try:
        config = get_config()
        config.validate()
    except ValueError as e:
        error_msg = f"Configuration error: {e}\n\nPlease run: python scripts/connect_graph.py"
        messagebox.showerror("Configuration Error", error_msg)
        logger.error(f"Configuration error: {e}")
        return 1

    # Authenticate
    authenticator = create_authenticator_from_config(config.to_dict())
    if not authenticator.get_account_info():
        error_msg = "Not authenticated to Microsoft Graph.\n\nPlease run: python scripts/connect_graph.py"
        messagebox.showwarning("Authentication Required", error_msg)
        logger.error("Not authenticated")
        return 1

    orchestrator = build_orchestrator(config, authenticator)
    logger.info(f"Family name: {orchestrator.family_name}")

    # Pre-fill To/Cc from the last sent request
    mailing_list = orchestrator.mailing_list_store.load()

    form = LeaveForm(
        family_name=orchestrator.family_name,
        to_text=format_addresses(mailing_list.to),
        cc_text=format_addresses(mailing_list.cc),
        excel_save_folder=config.excel_save_folder,
        signature_html=get_default_signature_html(config.signature_folder)
    )

    root = tk.Tk()
    OutOfOfficeWindow(root, form, orchestrator, available_signature_names(config.signature_folder))

    # Center on screen
    root.update_idletasks()
    x = (root.winfo_screenwidth() // 2) - (root.winfo_width() // 2)
    y = (root.winfo_screenheight() // 2) - (root.winfo_height() // 2)
    root.geometry(f"+{x}+{y}")

    root.mainloop()

    logger.info("Script execution completed")
    print(f"Detailed log saved to: {log_file}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
