import logging
import os
import subprocess
import sys

logger = logging.getLogger(__name__)


def run_streamlit(config_path: str = None) -> int:
    """
    Finds and runs the ui.py script using Streamlit.
    Returns the process exit code.
    """
    ui_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "ui.py")
    if not os.path.exists(ui_path):
        logger.error(f"ui.py not found at {ui_path}")
        return 1

    command = [sys.executable, "-m", "streamlit", "run", ui_path]
    if config_path:
        # arguments after `--` are passed to the script, not to streamlit
        command += ["--", "--config", config_path]

    logger.info(f"Launching Streamlit app from: {ui_path}")
    try:
        subprocess.run(command, check=True)
    except FileNotFoundError:
        logger.error("Python executable not found; cannot start streamlit.")
        return 1
    except subprocess.CalledProcessError as e:
        logger.error(f"An error occurred while running the Streamlit app: {e}")
        return e.returncode
    return 0


if __name__ == "__main__":
    sys.exit(run_streamlit(sys.argv[1] if len(sys.argv) > 1 else None))
