'''
Console and file logging with verbosity control for the eigensolvers.

The solvers report restarts, convergence and timing through a single process-wide
`Logger` obtained with `get_global_logger`. The logger wraps the standard `logging`
module and adds indentation levels, optional ANSI colours, banner titles and
a tabular timing summary used by the benchmark script.

@note File logging is enabled by setting the environment variable PYLOGFILE to a non-zero value.
@note Coloured output is disabled by setting the environment variable PYLOGCOLORS to '0'.
@note The default level is read from PYLOGLEVEL ('debug', 'info', 'warning', 'error').

-------------------------------------------------------
file        :   krylov_eigen/common/flog.py
date        :   2025-05-01
-------------------------------------------------------
'''

__all__         = [
    "Logger",
    "Colors",
    "log_timing_summary",
    "get_global_logger"
]

import os
import re
import sys
import functools
import logging
import threading
from datetime import datetime
from typing import Optional, Dict, List, Union

import numpy as np

######################################################
#! ENVIRONMENT
######################################################

ENV_LOGGER_FILE     = 'PYLOGFILE'
ENV_LOGGER_COLORS   = 'PYLOGCOLORS'
ENV_LOGGER_LEVEL    = 'PYLOGLEVEL'
ENV_LOGGER_INIT     = 'KRYLOV_EIGEN_LOGGER_INIT_DONE'

# Track already configured logger names to prevent duplicate handlers
_CONFIGURED_LOGGERS = set()

######################################################
#! PRINT THE OUTPUT WITH A GIVEN COLOR
######################################################

class Colors:
    """
    ANSI colours for console output.

    Attributes:
        black, red, green, yellow, blue (str):
            ANSI escape codes for the respective text colour.
        white (str):
            ANSI escape code resetting the colour to the terminal default.
    """

    black   = "\033[30m"
    red     = "\033[31m"
    green   = "\033[32m"
    yellow  = "\033[33m"
    blue    = "\033[34m"
    white   = "\033[0m"  # Reset / default color

    def __init__(self, color : str):
        self.color = color

    def __str__(self) -> str:
        mapping = {
            "black" : Colors.black,
            "red"   : Colors.red,
            "green" : Colors.green,
            "yellow": Colors.yellow,
            "blue"  : Colors.blue,
        }
        return mapping.get(self.color, Colors.white)

    def __call__(self, text: str) -> str:
        """
        Apply the colour to the given text.
        """
        return f"{self}{text}{Colors.white}"

# Regex for ANSI colour codes (CSI sequences: ESC [ ... m)
_ansi_escape = re.compile(r'\x1b\[[0-9;]*m')

class StripAnsiFormatter(logging.Formatter):
    """Formatter for log files, removes the colour codes from the final record."""

    def format(self, record):
        msg = super().format(record)
        return _ansi_escape.sub('', msg)

######################################################
#! LOGGER
######################################################

def _level_from_env(default: int = logging.INFO) -> int:
    """Read the default logging level from PYLOGLEVEL."""
    value = os.environ.get(ENV_LOGGER_LEVEL, '').strip().lower()
    if not value:
        return default
    return Logger.LEVELS_R.get(value, default)

class Logger:
    """
    Logger class for handling console and file logging with verbosity control.

    Every message can carry an indentation level `lvl`, printed as tabulators followed
    by an arrow, which the solvers use to nest per-restart diagnostics below a run header.
    """

    LEVELS = {
        logging.DEBUG   : 'debug',
        logging.INFO    : 'info',
        logging.WARNING : 'warning',
        logging.ERROR   : 'error'
    }

    LEVELS_R = {v: k for k, v in LEVELS.items()}

    def __init__(self,
                name            : str                   = "Global",
                logfile         : Optional[str]         = None,
                lvl             : Union[int, str]       = logging.INFO,
                append_ts       : bool                  = False,
                use_ts_in_cmd   : bool                  = False):
        """
        Initialize the logger instance.

        Args:
            name (str):
                Name of the underlying `logging` logger.
            logfile (str):
                Name of the log file (a timestamp is used when empty). Only used when
                PYLOGFILE is set to a non-zero value.
            lvl (int | str):
                Logging level, either a `logging` constant or its lowercase name.
            append_ts (bool):
                Whether to append a timestamp to the log file name.
            use_ts_in_cmd (bool):
                Whether to print a timestamp in console output.
        """
        self.now                = datetime.now()
        self.now_str            = self.now.strftime("%d_%m_%Y_%H-%M_%S")
        self.lvl                = Logger.LEVELS_R.get(lvl.lower(), logging.INFO) if isinstance(lvl, str) else lvl
        self.handler_added      = False
        self.use_console_ts     = use_ts_in_cmd
        self.has_colors         = sys.stdout.isatty() and os.environ.get(ENV_LOGGER_COLORS, '1') != '0'

        self.logger             = logging.getLogger(name or __name__)
        self.logger.setLevel(self.lvl)
        self.logger.propagate   = False

        # Replace handlers left over from a previous instance with the same name
        for h in list(self.logger.handlers):
            self.logger.removeHandler(h)
            h.close()

        console_fmt = '%(asctime)s [%(levelname)s] %(message)s' if use_ts_in_cmd else '[%(levelname)s] %(message)s'
        ch          = logging.StreamHandler(sys.stdout)
        ch.setLevel(self.lvl)
        ch.setFormatter(logging.Formatter(console_fmt, datefmt="%d_%m_%Y_%H-%M_%S"))
        self.logger.addHandler(ch)
        _CONFIGURED_LOGGERS.add(name or __name__)

        if logfile is not None and os.environ.get(ENV_LOGGER_FILE, '0') != '0':
            self.logfile = (logfile[:-4] if logfile.endswith('.log') else logfile) if len(logfile) > 0 else self.now_str
            if append_ts:
                self.logfile += f'_{self.now_str}'
            self.configure("./log")
        else:
            self.logfile = self.now_str

    # --------------------------------------------------------------

    @staticmethod
    def colorize(txt: str, color: str):
        """
        Apply a colour to the given text (console output only).
        """
        if not color or color.lower() == 'white':
            return str(txt)
        return Colors(color)(str(txt))

    # --------------------------------------------------------------

    def configure(self, directory: str):
        """
        Attach a file handler writing to `directory/<logfile>.log`.

        Args:
            directory (str): Path to the directory where log files will be stored.
        """
        base_name       = self.now_str if len(self.logfile) == 0 else self.logfile
        self.logfile    = os.path.join(directory, f'{base_name}.log')
        os.makedirs(directory, exist_ok=True)

        with open(self.logfile, 'w+') as f:
            f.write('--------------------------------------------------\n')
            f.write(f'Eigensolver log created on {self.now_str}.\n')
            f.write(f'Log level set to: {self.LEVELS.get(self.lvl, "info")}.\n')
            f.write(f"Python version: {sys.version}\n")
            f.write(f"Current working directory: {os.getcwd()}\n")
            f.write('--------------------------------------------------\n')

        if not self.handler_added:
            self._f_handler = logging.FileHandler(self.logfile, encoding='utf-8')
            self._f_handler.setLevel(self.lvl)
            self._f_handler.setFormatter(StripAnsiFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt="%d_%m_%Y_%H-%M-%S"))
            self.logger.addHandler(self._f_handler)
            self.handler_added = True
            self._log_message(logging.INFO, f"Log file created: {self.logfile}")

    # --------------------------------------------------------------

    @staticmethod
    def print_tab(lvl=0):
        """
        Indentation prefix for a message at level `lvl`.
        """
        return '\t' * lvl + ('->' if lvl > 0 else '')

    @staticmethod
    def print(msg: str, lvl=0):
        """
        Format a message with its indentation prefix.
        """
        return f"{Logger.print_tab(lvl)}{msg}"

    # --------------------------------------------------------------

    def say(self, *args, end=True, log=logging.INFO, lvl=0, verbose=True, color=None):
        """
        Print and log multiple messages if verbosity is enabled.

        Args:
            *args: Messages to log.
            end (bool)      : Join the messages with newlines (default: True).
            log (int | str) : Log level, a `logging` constant or its name.
            lvl (int)       : Indentation level.
            verbose (bool)  : Log if True (default: True).
        """
        if isinstance(log, str):
            log = Logger.LEVELS_R.get(log.lower(), logging.DEBUG)

        if not verbose or log < self.lvl:
            return

        messages            = [str(arg) for arg in args]
        combined_message    = ' '.join(messages) if not end else '\n'.join(messages)
        if color is not None and self.has_colors:
            combined_message = self.colorize(combined_message, color)
        self._log_message(log, combined_message, lvl)

    def _log_message(self, log_level, msg, lvl = 0):
        log_function = getattr(self.logger, self.LEVELS.get(log_level, 'info'))
        log_function(Logger.print(msg, lvl))

    # --------------------------------------------------------------

    def info(self, msg: str, lvl=0, verbose=True, color=None):
        """
        Log an informational message if verbosity is enabled.
        """
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.info(Logger.print(msg, lvl))

    def debug(self, msg: str, lvl=0, verbose=True, color=None):
        """
        Log a debug message if verbosity is enabled.
        """
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.debug(Logger.print(msg, lvl))

    def warning(self, msg: str, lvl=0, verbose=True, color='yellow'):
        """
        Log a warning message if verbosity is enabled.
        """
        if not verbose:
            return
        if self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.warning(Logger.print(msg, lvl))

    def error(self, msg: str, lvl=0, verbose=True, color='red'):
        """
        Log an error message if verbosity is enabled.
        """
        if not verbose:
            return
        if self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.error(Logger.print(msg, lvl))

    def warn(self, msg: str, lvl=0, verbose=True, color='yellow'): return self.warning(msg, lvl, verbose, color)
    def dbg(self, msg: str, lvl=0, verbose=True, color=None):      return self.debug(msg, lvl, verbose, color)

    # --------------------------------------------------------------

    def breakline(self, n: int = 1):
        """
        Log `n` empty lines.
        """
        for _ in range(n):
            self.logger.info('')

    def title(self, tail: str, desired_size: int=50, fill: str = '=', lvl=0, verbose=True, color=None):
        """
        Log a banner with `tail` centred between filler characters.

        Args:
            tail (str):
                Text in the middle of the title.
            desired_size (int):
                Total width of the title.
            fill (str):
                Character used for filling.
            lvl (int):
                Indentation level.
        """
        if not verbose:
            return
        tail_length = len(tail)
        lvl_length  = 2 + lvl * 3 * 2
        if tail_length + lvl_length > desired_size:
            self.info(tail, lvl, verbose)
            return

        fill_size   = (desired_size - tail_length) // (2 * len(fill))
        out         = (fill * fill_size) + f"{tail}" + (fill * fill_size)

        if len(out) < desired_size:
            out += fill[0] * (desired_size - len(out) - 1)
        elif len(out) > desired_size:
            out = out[:desired_size]

        self.info(out, lvl, verbose, color)

    # --------------------------------------------------------------

    def timing(self, func):
        """
        Decorator logging the execution time of `func` at debug level.

        Use as:
            @logger.timing
            def my_function(...):
                ...
        """

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            self.debug(f"Starting '{func.__name__}'...")
            start_time  = datetime.now()
            result      = func(*args, **kwargs)
            duration    = (datetime.now() - start_time).total_seconds()
            self.debug(f"Finished '{func.__name__}' in {duration:.4f} seconds.")
            return result
        return wrapper

######################################################
#! GLOBAL LOGGER
######################################################

_G_LOGGER     = None
_G_LOGGER_PID = None
_G_LOCK       = threading.Lock()

def get_global_logger(**kwargs) -> Logger:
    """
    One Logger wrapper per process (PID), safe across threads/forks.

    Args:
        **kwargs: Arguments to pass to the Logger constructor on first use.
        - name (str): Name of the logger (default: "KrylovEigen").
        - lvl (int): Logging level (default: PYLOGLEVEL or logging.INFO).
        - append_ts (bool): Whether to append timestamps to the file name (default: True).
        - use_ts_in_cmd (bool): Whether to print timestamps on the console (default: True).
        - logfile (str or None): Path to a logfile (default: None).

    Returns:
        Logger: The global logger instance.

    Example
    -------
        >>> logger = get_global_logger()
        >>> logger.info("Restart 3: 7/10 Ritz values converged.", lvl=1)
    """
    global  _G_LOGGER, _G_LOGGER_PID
    pid     = os.getpid()

    if _G_LOGGER is not None and _G_LOGGER_PID == pid:
        return _G_LOGGER

    with _G_LOCK:
        if _G_LOGGER is not None and _G_LOGGER_PID == pid:
            return _G_LOGGER

        logger = Logger(
            name            = kwargs.get("name",            "KrylovEigen"),
            lvl             = kwargs.get("lvl",             _level_from_env()),
            append_ts       = kwargs.get("append_ts",       True),
            use_ts_in_cmd   = kwargs.get("use_ts_in_cmd",   True),
            logfile         = kwargs.get("logfile",         None),
        )

        # Banner only once per program (env is inherited by forked workers)
        if os.environ.get(ENV_LOGGER_INIT, "0") != "1":
            os.environ[ENV_LOGGER_INIT] = "1"
            if os.environ.get("PY_BACKEND_INFO", "0") != "0":
                logger.title("Global Logger initialized!", 50, '#', 0)

        _G_LOGGER       = logger
        _G_LOGGER_PID   = pid
        return _G_LOGGER

######################################################
#! TIMING TABLES
######################################################

def log_timing_summary(
    logger              : Logger,
    phase_durations     : Dict[str, float],
    total_duration      : Optional[float] = None,
    title               : str = "Timing Summary",
    phase_col_width     : int = 18,
    duration_col_width  : int = 14,
    duration_precision  : int = 4,
    lvl                 : int = 0,
    add_total_row       : bool = True,
    extra_info          : Optional[List[str]] = None
):
    """
    Logs a timing summary in a tabular format using the provided logger.

    Parameters:
    logger:
        Logger instance to log the timing summary.
    phase_durations:
        Dictionary mapping phase names (str) to their durations in seconds.
    total_duration:
        Total duration of the process (optional). If provided and
        add_total_row is True, it is used for the "Total" row.
    title:
        Title for the summary table.
    phase_col_width, duration_col_width:
        Widths of the two columns.
    duration_precision:
        Decimal precision for duration values.
    lvl:
        Base indentation level for the summary.
    add_total_row:
        Whether to include a 'Total' row.
    extra_info:
        Optional list of strings to log above the table.
    """
    if logger is None:
        raise ValueError("A Logger instance is required for log_timing_summary.")

    phase_header        = "Phase"
    duration_header     = "Duration (s)"
    phase_col_width     = max(phase_col_width, len(phase_header))
    duration_col_width  = max(duration_col_width, len(duration_header))

    separator           = f"|{'-' * (phase_col_width + 2)}|{'-' * (duration_col_width + 2)}|"
    header_fmt          = f"| {phase_header:<{phase_col_width}} | {duration_header:>{duration_col_width}} |"
    row_fmt             = f"| {{phase_name:<{phase_col_width}}} | {{duration:>{duration_col_width}.{duration_precision}f}} |"

    logger.title(f"{title}", 50, '#', lvl)
    for info in (extra_info or []):
        logger.info(info, lvl=lvl + 1)

    logger.info(separator, lvl=lvl + 1)
    logger.info(header_fmt, lvl=lvl + 1)
    logger.info(separator, lvl=lvl + 1)

    calculated_sum = 0.0
    if phase_durations:
        for name, duration in phase_durations.items():
            logger.info(row_fmt.format(phase_name=name, duration=duration), lvl=lvl + 1)
            calculated_sum += duration
    else:
        logger.info(f"| {'No phases timed':<{phase_col_width + duration_col_width + 3}} |", lvl=lvl + 1)

    if add_total_row:
        logger.info(separator, lvl=lvl + 1)
        if total_duration is not None and not np.isclose(total_duration, calculated_sum, rtol=1e-3, atol=1e-4):
            logger.warning(f"Provided total duration ({total_duration:.4f}s) differs from sum of phases ({calculated_sum:.4f}s). Using provided total.", lvl=lvl + 2)
        actual_total = total_duration if total_duration is not None else calculated_sum
        logger.info(row_fmt.format(phase_name="Total", duration=actual_total), lvl=lvl + 1)

    logger.info(separator, lvl=lvl + 1)

########################################################
#! EOF
