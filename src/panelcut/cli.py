#!/usr/bin/env python3
"""CLI 진입점 - 서브커맨드 라우팅"""

import logging
import random
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import OptimizerConfig
from .errors import OptimizationError

USAGE = """사용법:
  panelcut                              대화형 재단 계획
  panelcut run <request.json> [out.png] 요청 파일 최적화, 결과 JSON 출력
  panelcut algorithms                   전략 목록"""


def print_algorithms(config):
    from .manager import AlgorithmManager

    manager = AlgorithmManager.with_defaults(config)
    for info in manager.metadata():
        marker = "*" if info['name'] == manager.default_name else " "
        print(f"{marker} {info['name']:<36} 회전={'O' if info['supportsRotation'] else 'X'} "
              f"다중원판={'O' if info['supportsMultiSheet'] else 'X'} ~{info['estimatedTime']}ms")
        print(f"    {info['description']}")
    return 0


def run_request_file(path, config, output_png=None):
    """요청 JSON 파일을 최적화하고 결과 JSON 출력"""
    from .manager import AlgorithmManager, run_optimization
    from .models import OptimizationRequest

    try:
        request = OptimizationRequest.model_validate_json(Path(path).read_text(encoding='utf-8'))
    except OSError as e:
        print(f"❌ 오류: 파일을 읽을 수 없습니다: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"❌ 오류: 잘못된 요청 형식\n{e}", file=sys.stderr)
        return 1

    manager = AlgorithmManager.with_defaults(config)
    rng = random.Random(config.seed) if config.seed is not None else None
    try:
        result = run_optimization(request, manager=manager, rng=rng)
    except OptimizationError as e:
        print(f"❌ 오류: {e}", file=sys.stderr)
        return 1

    print(result.model_dump_json(by_alias=True, indent=2))

    if output_png:
        from .visualizer import visualize_result
        visualize_result(result, request.panels[0], output_path=output_png)
    return 0


def main(argv=None):
    """CLI 진입점

    서브커맨드:
    - (없음): 대화형 재단 계획
    - run: 요청 파일 최적화
    - algorithms: 전략 목록
    """
    args = sys.argv[1:] if argv is None else list(argv)
    config = OptimizerConfig.from_env()
    logging.basicConfig(level=config.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args and args[0] == "algorithms":
        return print_algorithms(config)
    if args and args[0] == "run":
        if len(args) < 2:
            print(USAGE, file=sys.stderr)
            return 2
        return run_request_file(args[1], config, args[2] if len(args) > 2 else None)
    if args and args[0] in ("-h", "--help", "help"):
        print(USAGE)
        return 0
    if args:
        print(USAGE, file=sys.stderr)
        return 2

    from .interactive import run_interactive
    return run_interactive(config)


if __name__ == "__main__":
    sys.exit(main())
