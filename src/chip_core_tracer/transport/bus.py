# chip_core_tracer/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、仮想マシンのメモリアドレス空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
全てのアクセスは境界チェックされ、範囲外アクセスは MemoryAccessError となります。
"""
from abc import ABC, abstractmethod
from typing import List, Tuple
from dataclasses import dataclass
from enum import Enum

from chip_core_tracer.errors import MemoryAccessError

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    """
    @abstractmethod
    def read(self, address: int) -> int:
        """
        指定されたアドレス（デバイス内オフセット）から8bitのデータを読み出します。
        """
        pass

    @abstractmethod
    def write(self, address: int, data: int) -> None:
        """
        指定されたアドレス（デバイス内オフセット）に8bitのデータを書き込みます。
        """
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    仮想マシンの主記憶として使用するRAMデバイス。
    """
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    # @intent:pre-condition アドレスはRAMの有効範囲内である必要があります。
    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise MemoryAccessError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    # @intent:pre-condition アドレスはRAMの有効範囲内であり、データは8bit値である必要があります。
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise MemoryAccessError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    # @intent:responsibility RAMの内容を全て0にクリアします。
    def clear(self) -> None:
        self._memory[:] = bytes(self._size)

    def get_size(self) -> int:
        return self._size

# @intent:responsibility メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
    バス上で行われた全てのメモリアクセスを記録する機能を提供します。
    """
    def __init__(self):
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._bus_activity_log: List[BusAccess] = []

    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:pre-condition start_address <= end_addressかつ非負であり、deviceはDeviceのインスタンスである必要があります。
    # @intent:rationale アドレス範囲の重複チェックは行いません。システム構成の層で管理されるべきと判断しました。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        """
        指定されたアドレス範囲にデバイスを登録します。
        RAMを登録する場合、そのサイズはアドレス範囲と一致する必要があります。
        """
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")

        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:post-condition デバイスが見つからなかった場合、MemoryAccessErrorを発生させます。
    def _find_device(self, address: int) -> Tuple[Device, int]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        raise MemoryAccessError(f"Address {address:#06x} not mapped to any device.")

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出し、ログに記録します。
    def read(self, address: int) -> int:
        device, offset = self._find_device(address)
        data = device.read(offset)
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        インスペクタやデバッガ用。
        """
        device, offset = self._find_device(address)
        return device.read(offset)

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込み、ログに記録します。
    def write(self, address: int, data: int) -> None:
        device, offset = self._find_device(address)
        device.write(offset, data)
        self._log_access(address, data, BusAccessType.WRITE)

    # @intent:responsibility ログを記録せずにデータ列を書き込みます。
    # @intent:rationale ローダーやフォント配置など、命令実行に由来しない書き込みを
    #                  スナップショットのバスアクティビティから除外するために使用します。
    def load(self, address: int, data: bytes) -> None:
        """
        address から data を順に書き込みます（ログ記録なし）。
        """
        for i, value in enumerate(data):
            device, offset = self._find_device(address + i)
            device.write(offset, value)

    # @intent:responsibility ログを記録せずに連続したメモリ領域を読み出します。
    def dump(self, address: int, length: int) -> bytes:
        return bytes(self.peek(address + i) for i in range(length))

    # @intent:responsibility 登録された全てのRAMデバイスをクリアします。
    def clear(self) -> None:
        for _, _, device in self._memory_map:
            if isinstance(device, RAM):
                device.clear()
        self._bus_activity_log = []
