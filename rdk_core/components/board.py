"""Board client: GPIO, PWM, analog readers and digital interrupts."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any, Mapping, Optional, TypedDict

from google.protobuf.duration_pb2 import Duration
from viam.gen.component.board.v1 import board_pb2 as board_pb

from ..resource import ResourceClient
from ..schema import service

PowerMode = board_pb.PowerMode


class Tick(TypedDict):
    """One digital interrupt edge from :meth:`BoardClient.stream_ticks`."""

    pin_name: str
    high: bool
    time: int  # nanoseconds since boot


class BoardClient(ResourceClient):
    SERVICE = service(board_pb, "BoardService")
    SUBTYPE = "board"

    # ── GPIO / PWM ───────────────────────────────────────────────────

    async def set_gpio(
        self, pin: str, high: bool, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("SetGPIO", pin=pin, high=high, extra=extra)

    async def get_gpio(self, pin: str, extra: Optional[Mapping[str, Any]] = None) -> bool:
        return (await self._call("GetGPIO", pin=pin, extra=extra)).high

    async def get_pwm(self, pin: str, extra: Optional[Mapping[str, Any]] = None) -> float:
        """Duty cycle of *pin* in ``[0, 1]``."""
        return (await self._call("PWM", pin=pin, extra=extra)).duty_cycle_pct

    async def set_pwm(
        self, pin: str, duty_cycle: float, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("SetPWM", pin=pin, duty_cycle_pct=duty_cycle, extra=extra)

    async def get_pwm_frequency(
        self, pin: str, extra: Optional[Mapping[str, Any]] = None
    ) -> int:
        return (await self._call("PWMFrequency", pin=pin, extra=extra)).frequency_hz

    async def set_pwm_frequency(
        self, pin: str, frequency_hz: int, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("SetPWMFrequency", pin=pin, frequency_hz=frequency_hz, extra=extra)

    # ── Analog / interrupts ──────────────────────────────────────────

    async def read_analog_reader(
        self, name: str, extra: Optional[Mapping[str, Any]] = None
    ) -> board_pb.ReadAnalogReaderResponse:
        """Read analog reader *name*; the response carries value and range."""
        return await self._call(
            "ReadAnalogReader", board_name=self.name, analog_reader_name=name, extra=extra
        )

    async def write_analog(
        self, pin: str, value: int, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("WriteAnalog", pin=pin, value=value, extra=extra)

    async def get_digital_interrupt_value(
        self, name: str, extra: Optional[Mapping[str, Any]] = None
    ) -> int:
        response = await self._call(
            "GetDigitalInterruptValue",
            board_name=self.name,
            digital_interrupt_name=name,
            extra=extra,
        )
        return response.value

    async def stream_ticks(
        self,
        interrupts: list[str],
        queue: list[Tick],
        *,
        stop_event: Optional[asyncio.Event] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Append a :class:`Tick` to *queue* for every edge on *interrupts*.

        Runs until the server ends the stream, or until *stop_event* is set.
        """
        async for tick in self._stream(
            "StreamTicks", pin_names=interrupts, stop_event=stop_event, extra=extra
        ):
            queue.append(Tick(pin_name=tick.pin_name, high=tick.high, time=tick.time))

    # ── Power ────────────────────────────────────────────────────────

    async def set_power_mode(
        self,
        mode: int,
        duration: Optional[timedelta] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        pb_duration = None
        if duration is not None:
            pb_duration = Duration()
            pb_duration.FromTimedelta(duration)
        await self._call("SetPowerMode", power_mode=mode, duration=pb_duration, extra=extra)
