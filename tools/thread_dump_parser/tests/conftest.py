# tools/thread_dump_parser/tests/conftest.py
import pytest


@pytest.fixture
def simple_thread_dump():
    """One JDK 8 dump: frames, locking info, header-only threads and an epilogue."""
    return '''2016-08-13 17:42:10
Full thread dump Java HotSpot(TM) 64-Bit Server VM (25.51-b03 mixed mode):

"Attach Listener" #23 daemon prio=9 os_prio=0 tid=0x00007f61f4001000 nid=0x1a0c waiting on condition [0x0000000000000000]
   java.lang.Thread.State: RUNNABLE

   Locked ownable synchronizers:
\t- None

"Reference Handler" #2 daemon prio=10 os_prio=0 tid=0x00007f6220025000 nid=0x1829 in Object.wait() [0x00007f6209147000]
   java.lang.Thread.State: WAITING (on object monitor)
\tat java.lang.Object.wait(Native Method)
\t- waiting on <0x00000000c0008c50> (a java.lang.ref.Reference$Lock)
\tat java.lang.Object.wait(Object.java:502)

   Locked ownable synchronizers:
\t- None

"main" #1 prio=5 os_prio=0 tid=0x00007f6220009800 nid=0x1823 sleeping[0x00007f6229aec000]
   java.lang.Thread.State: TIMED_WAITING (sleeping)
\tat java.lang.Thread.sleep(Native Method)
\tat com.example.Main.main(Main.java:10)

   Locked ownable synchronizers:
\t- None

"VM Thread" os_prio=0 tid=0x00007f622006e800 nid=0x1826 runnable

"VM Periodic Task Thread" os_prio=0 tid=0x00007f62200c4000 nid=0x182f waiting on condition

JNI global references: 7
'''


@pytest.fixture
def two_thread_dumps():
    """Log noise followed by two dumps taken a minute apart."""
    return '''INFO starting application
2016-08-13 17:42:10
Full thread dump Java HotSpot(TM) 64-Bit Server VM (25.51-b03 mixed mode):

"worker-1" #10 prio=5 os_prio=0 tid=0x00007f1234567890 nid=0xa runnable [0x00007f1100000000]
   java.lang.Thread.State: RUNNABLE
\tat com.example.Service.process(Service.java:50)

"worker-2" #11 prio=5 os_prio=0 tid=0x00007f1234567891 nid=0xb waiting for monitor entry [0x00007f1200000000]
   java.lang.Thread.State: BLOCKED (on object monitor)
\tat com.example.Service.process(Service.java:50)
\t- waiting to lock <0x00000000e1234567> (a java.lang.Object)

2016-08-13 17:43:10
Full thread dump Java HotSpot(TM) 64-Bit Server VM (25.51-b03 mixed mode):

"worker-3" #12 daemon prio=5 os_prio=0 tid=0x00007f1234567892 nid=0xc runnable
   java.lang.Thread.State: RUNNABLE
\tat com.example.Service.process(Service.java:50)

'''


@pytest.fixture
def jdk17_thread_dump():
    """jstack output from a recent JDK: cpu/elapsed fields on the header."""
    return '''2024-01-15 10:30:45
Full thread dump OpenJDK 64-Bit Server VM (17.0.1+12 mixed mode, sharing):

"main" #1 prio=5 os_prio=0 cpu=120.52ms elapsed=31.20s tid=0x00007f9c5c024800 nid=0x1092 waiting on condition  [0x00007f9c63ffe000]
   java.lang.Thread.State: TIMED_WAITING (sleeping)
\tat java.lang.Thread.sleep(java.base@17.0.1/Native Method)
\tat com.example.Main.main(Main.java:10)

"GC Thread#0" os_prio=0 cpu=1.05ms elapsed=31.21s tid=0x00007f9c5c052000 nid=0x1093 runnable

'''
