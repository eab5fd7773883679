"""Main entry point for the TDCR simulation."""

import logging

from tdcr_sim.cli.cli import ConsoleInput, parse_args
from tdcr_sim.config.config import TDCRConfig
from tdcr_sim.controllers import GamepadInput
from tdcr_sim.core.kinematics import KinematicFailure, TDCRModel
from tdcr_sim.core.scenario import ScenarioMode
from tdcr_sim.logging_config import setup_logging
from tdcr_sim.messaging.chatter import ChatterPublisher
from tdcr_sim.render.visualizer import HeadlessVisualizer, MujocoVisualizer
from tdcr_sim.runtime.event_source import EventSource
from tdcr_sim.runtime.main_loop import MainLoop

logger = logging.getLogger("tdcr_sim.run")


def main(argv=None):
    """Initialize and run the TDCR simulation.

    Returns:
        Final StateSnapshot of the main loop
    """
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    print("=" * 60)
    print("腱驱动连续体机器人仿真 (TDCR Simulator)")
    print("=" * 60)

    # 1. 加载配置
    print("\n[1/6] 加载配置文件...")
    cfg = TDCRConfig(args.config)
    scenario = ScenarioMode.from_selector(args.scenario or cfg.sim.scenario)
    print(f"  - 仿真步长: {cfg.sim.timestep}s ({cfg.timer_period_ms} ms)")
    print(f"  - 场景: {scenario.value}")
    print(f"  - 段数: {len(cfg.robot.segments)}")

    # 2. 运动学模型
    print("\n[2/6] 创建运动学模型...")
    geometry = cfg.build_geometry()
    model = TDCRModel(geometry)
    print(f"  - 自由度: {model.dof}, 圆盘数: {model.disk_count}")

    # 3. 可视化
    print("\n[3/6] 初始化可视化...")
    if args.headless:
        vis = HeadlessVisualizer(max_ticks=args.ticks)
    else:
        vis = MujocoVisualizer(
            [seg.disk_spacing for seg in geometry.segments],
            geometry.tendons_per_segment,
        )
    vis.init_scene(scenario)
    vis.draw_skeleton(
        [seg.disk_count for seg in geometry.segments],
        geometry.pitch_radii,
        cfg.render.disk_radius,
        cfg.render.outer_radius,
        cfg.render.disk_height,
    )

    # 4. 主循环
    print("\n[4/6] 创建主循环...")
    event_loop = MainLoop(vis, model, cfg.sim.timestep, scenario, cfg.sim.actuation_step)
    initial = model.forward_kinematics(event_loop.state.actuation)
    if isinstance(initial, KinematicFailure):
        logger.warning("Initial actuation has no valid pose: %s", initial)
    else:
        vis.update_pose(initial.disks)

    # 5. 消息发布 (chatter)
    print("\n[5/6] 启动 chatter 发布...")
    chatter = None
    if cfg.chatter.enabled and not args.no_chatter:
        chatter = ChatterPublisher(cfg.chatter.endpoint, cfg.chatter.topic, cfg.chatter.rate_hz)
        chatter.start()
        print(f"  - ZMQ 发布端口: {cfg.chatter.endpoint} (topic '{cfg.chatter.topic}')")
    else:
        print("  - chatter 已禁用")

    # 6. 事件源与输入设备
    print("\n[6/6] 启动事件源...")
    inputs = []
    gamepad = None if args.headless else GamepadInput.detect()
    if gamepad is not None:
        inputs.append(gamepad)
    source = EventSource(vis.get_surface_handle(), cfg.timer_period_ms, inputs)

    if not args.no_console:
        console = ConsoleInput(source.post, event_loop.snapshot)
        console.start()
        print("  - CLI 线程已启动")

    print("\n" + "=" * 60)
    print("系统就绪，开始仿真...")
    print("输入 'h' 查看帮助; 窗口内小键盘: Enter 暂停, . 切换场景, 0 重置")
    print("=" * 60 + "\n")

    try:
        source.run(event_loop)
    except KeyboardInterrupt:
        print("\n\n仿真被用户中断")
        event_loop.on_shutdown()
    finally:
        print("\n清理资源...")
        if chatter is not None:
            chatter.stop()
        if gamepad is not None:
            gamepad.close()
        print("仿真已结束")

    return event_loop.snapshot()


if __name__ == "__main__":
    main()
