"""Command-line interface for the TDCR simulation.

This module provides the command line arguments of run.py and an
interactive console for commanding the robot while the viewer runs.
The console runs on its own thread and only posts events to the event
source; it never touches the simulation state directly.
"""

import argparse
import logging
import threading

from tdcr_sim.core.scenario import MODE_KEY, PAUSE_KEY, RESET_KEY
from tdcr_sim.runtime.events import KeyPress, Shutdown


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tdcr-sim",
        description="Interactive forward kinematics of tendon-driven continuum robots.",
    )
    parser.add_argument("scenario", nargs="?", default=None,
                        help="scenario selector, e.g. a0 (default) or a4")
    parser.add_argument("--config", default="config/tdcr.yaml", help="path to the YAML configuration")
    parser.add_argument("--headless", action="store_true", help="run without the MuJoCo viewer")
    parser.add_argument("--ticks", type=int, default=None,
                        help="stop after this many timer ticks (headless runs)")
    parser.add_argument("--no-console", action="store_true", help="disable the interactive console")
    parser.add_argument("--no-chatter", action="store_true", help="disable the chatter publisher")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="logging level")
    parser.add_argument("--log-file", default=None, help="also write the log to this file")
    return parser


def parse_args(argv=None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    args.log_level = getattr(logging, args.log_level)
    return args


class ConsoleInput:
    """Interactive console posting key and shutdown events."""

    def __init__(self, post, snapshot=None):
        """Initialize the console.

        Args:
            post: Thread-safe callable queueing an event (EventSource.post)
            snapshot: Callable returning the latest StateSnapshot (optional)
        """
        self.post = post
        self.snapshot = snapshot
        self._quit_flag = False
        self._quit_lock = threading.Lock()

        width_list = [10, 12, 20]
        self.help_info = "\n --------- HELP INFO --------- "
        self.help_info += "\n {:<{}}".format("cmd", width_list[0])
        self.help_info += "{:^{}}".format("simple cmd", width_list[1])
        self.help_info += "{:<{}}".format("describ", width_list[2])

        self.cmd_list = []
        self.cmd_list.append(["h", "help", "帮助信息", self._help])
        self.cmd_list.append(["k", "key", "发送按键 key <name> [...]", self._key])
        self.cmd_list.append(["1", "get_state", "获取当前状态", self._get_state])
        self.cmd_list.append(["p", "pause", "暂停/继续", lambda args: self.post(KeyPress(PAUSE_KEY))])
        self.cmd_list.append(["m", "mode", "切换场景", lambda args: self.post(KeyPress(MODE_KEY))])
        self.cmd_list.append(["r", "reset", "重置驱动量", lambda args: self.post(KeyPress(RESET_KEY))])
        self.cmd_list.append(["q", "quit", "退出程序", self._quit])

        for it in self.cmd_list:
            self.help_info += "\n {:<{}}".format(it[1], width_list[0])
            self.help_info += "{:^{}}".format(it[0], width_list[1])
            self.help_info += "{:<{}}".format(it[2], width_list[2])

    def is_quit_requested(self):
        """Check if quit was requested."""
        with self._quit_lock:
            return self._quit_flag

    def start(self):
        """Run the console on a daemon thread."""
        threading.Thread(target=self.run, daemon=True).start()

    def _help(self, args=None):
        """Display help information."""
        print(self.help_info)

    def execute(self, cmd_line: str) -> bool:
        """Execute one command line.

        Returns:
            True if the command was recognised
        """
        parts = cmd_line.strip().split()
        if not parts:
            return False
        cmd, args = parts[0], parts[1:]
        for it in self.cmd_list:
            if it[0] == cmd or it[1] == cmd:
                it[3](args)
                return True
        print("未知命令，输入 h 或 help 查看帮助")
        return False

    def run(self):
        """Run the interactive console loop."""
        self._help()
        while not self.is_quit_requested():
            try:
                cmd_line = input("please input cmd: ")
                self.execute(cmd_line)
            except EOFError:
                # Handle Ctrl+D gracefully
                print("\n退出CLI")
                break
            except KeyboardInterrupt:
                print("\n中断，输入 q 或 quit 退出程序")

    def _key(self, args):
        """Post key presses, e.g. ``key KP_8 KP_8 KP_Add``."""
        if not args:
            print("用法: key <name> [...]")
            return
        for name in args:
            self.post(KeyPress(name))

    def _get_state(self, args=None):
        """Display the latest loop snapshot."""
        if self.snapshot is None:
            print("未找到状态对象")
            return

        state = self.snapshot()
        print("\n  当前状态")
        print(f"  status    : {state.status.value}")
        print(f"  scenario  : {state.scenario.value}")
        print("  actuation : " + ", ".join(f"{v:.4f}" for v in state.actuation))
        print(f"  ticks     : {state.ticks} (renders {state.renders}, failures {state.failures})")
        if state.end_effector is not None:
            print("  tip (m)   : " + ", ".join(f"{v:.4f}" for v in state.end_effector))
        if state.last_failure:
            print(f"  last fail : {state.last_failure}")
        print()

    def _quit(self, args=None):
        """Request the simulation to quit."""
        with self._quit_lock:
            self._quit_flag = True
        self.post(Shutdown())
        print("退出信号已发送")
